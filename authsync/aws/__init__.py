"""AWS components for authsync."""

from authsync.aws.appsync import AppSyncAuth, AppSyncAuthResources

__all__ = ["AppSyncAuth", "AppSyncAuthResources"]
