"""Client factories for tweetmail.

Construction of the tweepy and boto3 clients lives here so adapters receive
ready clients and tests can hand them fakes instead.
"""

from __future__ import annotations

import logging

import boto3
import tweepy

from settings import TwitterCredentials


def build_twitter_api(credentials: TwitterCredentials) -> tweepy.API:
    """Create a tweepy API client authorized with OAuth1 user context.

    The home timeline is only available to user-context tokens, so an
    app-only bearer token will not do here.
    """

    logging.getLogger(__name__).info("Initializing Twitter client")
    auth = tweepy.OAuth1UserHandler(
        credentials.consumer_key,
        credentials.consumer_secret,
        credentials.access_token,
        credentials.access_token_secret,
    )
    return tweepy.API(auth)


def build_s3_client():
    """Create an S3 client using the ambient AWS credential chain."""

    return boto3.session.Session().client("s3")


def build_ses_client(region: str):
    """Create an SES client pinned to region."""

    return boto3.session.Session().client("ses", region_name=region)
