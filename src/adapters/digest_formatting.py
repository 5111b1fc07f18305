"""Digest formatting helpers.

Keeping formatting here keeps every notifier rendering the same digest. The
HTML layout mimics a Twitter timeline card with inline styles only, since mail
clients drop stylesheets.
"""

from __future__ import annotations

import html
from typing import Sequence

from core.models import Tweet

TWITTER_URL = "https://twitter.com"

_FONT = (
    "15px system-ui, -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, "
    "Ubuntu, 'Helvetica Neue', sans-serif"
)

_RETWEET_ICON_PATH = (
    "M23.615 15.477c-.47-.47-1.23-.47-1.697 0l-1.326 1.326V7.4c0-2.178-1.772-3.95-3.95-3.95h-5.2"
    "c-.663 0-1.2.538-1.2 1.2s.537 1.2 1.2 1.2h5.2c.854 0 1.55.695 1.55 1.55v9.403l-1.326-1.326"
    "c-.47-.47-1.23-.47-1.697 0s-.47 1.23 0 1.697l3.374 3.375c.234.233.542.35.85.35s.613-.116"
    ".848-.35l3.375-3.376c.467-.47.467-1.23-.002-1.697zM12.562 18.5h-5.2c-.854 0-1.55-.695-1.55"
    "-1.55V7.547l1.326 1.326c.234.235.542.352.848.352s.614-.117.85-.352c.468-.47.468-1.23 0-1.697"
    "L5.46 3.8c-.47-.468-1.23-.468-1.697 0L.388 7.177c-.47.47-.47 1.23 0 1.697s1.23.47 1.697 0"
    "L3.41 7.547v9.403c0 2.178 1.773 3.95 3.95 3.95h5.2c.664 0 1.2-.538 1.2-1.2s-.535-1.2-1.198-1.2z"
)


def profile_url(screen_name: str) -> str:
    return f"{TWITTER_URL}/{screen_name}"


def status_url(tweet: Tweet) -> str:
    return f"{TWITTER_URL}/{tweet.author.screen_name}/status/{tweet.id}"


def avatar_url(tweet: Tweet) -> str:
    """Return the larger avatar variant; the API hands out 48px thumbnails."""

    return tweet.author.profile_image_url.replace("_normal.", "_reasonably_small.", 1)


def _oldest_first(tweets: Sequence[Tweet]) -> list[Tweet]:
    # Buckets are stored newest-first; ids are the only reliable order.
    return sorted(tweets, key=lambda tweet: tweet.id)


def _format_retweet_banner_html(retweeter: Tweet) -> str:
    url = html.escape(profile_url(retweeter.author.screen_name))
    name = html.escape(retweeter.author.name)
    return (
        '\n  <div style="display: flex;">\n'
        '    <svg viewBox="0 0 24 24" style="color: rgb(45, 51, 55); fill: currentcolor; width: 13px;">\n'
        f'      <g><path d="{_RETWEET_ICON_PATH}"></path></g>\n'
        "    </svg>\n"
        f'    <a href="{url}" style="color: rgb(136, 153, 166); font-size: 14px; '
        f'margin-left: 105px; text-decoration: none;">{name} Retweeted</a>\n'
        "  </div>"
    )


def _format_tweet_html(tweet: Tweet) -> str:
    author_url = html.escape(profile_url(tweet.author.screen_name))
    image = html.escape(avatar_url(tweet))
    link = html.escape(status_url(tweet))
    name = html.escape(tweet.author.name)
    handle = html.escape(tweet.author.screen_name)
    text = html.escape(tweet.full_text)
    return (
        '\n  <div style="display: flex;">\n'
        f'    <a href="{author_url}" style="border-radius: 9999px; flex-shrink: 0; margin-right: 5px; '
        'max-height: 100px; min-width: 100px; overflow: hidden;">\n'
        f'      <img src="{image}" style="height: 100px; width: 100px;">\n'
        "    </a>\n"
        "    <div>\n"
        "      <div>\n"
        f'        <a href="{author_url}" style="color: rgb(45, 51, 55); text-decoration: none;">\n'
        f'          <span style="font-weight: bold;">{name}</span>\n'
        f'          <span style="color: rgb(136, 153, 166);">@{handle}</span>\n'
        "        </a>\n"
        "      </div>\n"
        '      <div style="line-height: 1.3125; width: 50%;">\n'
        f'        <a href="{link}" style="color: black; text-decoration: none;">{text}</a>\n'
        "      </div>\n"
        "    </div>\n"
        "  </div>"
    )


def _format_html(tweets: Sequence[Tweet]) -> str:
    """Create the HTML digest body used by the SES notifier."""

    blocks = []
    for tweet in _oldest_first(tweets):
        parts = [f'<div style="margin-bottom: 10px; font: {_FONT};">']
        shown = tweet
        if tweet.retweeted_status is not None:
            parts.append(_format_retweet_banner_html(tweet))
            shown = tweet.retweeted_status
        parts.append(_format_tweet_html(shown))
        parts.append("\n</div>\n")
        blocks.append("".join(parts))
    return "".join(blocks)


def _format_text(tweets: Sequence[Tweet]) -> str:
    """Create a plain-text digest for clients without HTML."""

    divider = "──────────────"
    blocks = []
    for tweet in _oldest_first(tweets):
        lines = []
        shown = tweet
        if tweet.retweeted_status is not None:
            lines.append(f"{tweet.author.name} Retweeted")
            shown = tweet.retweeted_status
        lines.extend(
            [
                f"{shown.author.name} @{shown.author.screen_name}",
                shown.full_text,
                status_url(shown),
                divider,
            ]
        )
        blocks.append("\n".join(lines))
    return "\n".join(blocks)


def format_digest(tweets: Sequence[Tweet], mode: str = "html") -> str:
    """Return the digest of tweets, oldest first, in the requested mode."""

    if mode == "html":
        return _format_html(tweets)
    if mode == "text":
        return _format_text(tweets)
    raise ValueError(f"Unsupported digest format: {mode}")
