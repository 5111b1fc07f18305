"""Core domain package for tweetmail.

Core holds bucket keys, the tweet model, and the run state machine without any
Twitter, S3, or SES code, keeping the business logic portable.
"""
