"""Slack adapters: RTM streams and the OAuth handshake."""

from botfleet.services.slack.base import ChatConnection
from botfleet.services.slack.oauth import AccessGrant, Identity, SlackOAuthExchange
from botfleet.services.slack.rtm import SlackRTMConnection

__all__ = ["ChatConnection", "AccessGrant", "Identity", "SlackOAuthExchange", "SlackRTMConnection"]
