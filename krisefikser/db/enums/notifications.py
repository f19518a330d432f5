"""Notification enums."""

from enum import Enum


class NotificationType(str, Enum):
    MEMBERSHIP_REQUEST = "membership_request"
    INCIDENT = "incident"
    STOCK_CONTROL = "stock_control"
    HOUSEHOLD = "household"
    INFO = "info"
