"""Downstream data store clients."""

from llu_uploader.data.nightscout import (
    NightscoutApiV1Client,
    NightscoutApiV3Client,
    NightscoutClient,
    create_nightscout_client
)

__all__ = [
    "NightscoutClient",
    "NightscoutApiV1Client",
    "NightscoutApiV3Client",
    "create_nightscout_client"
]
