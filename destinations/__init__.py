from .azuracast import AzuraCastAdapter, AzuraCastClient
from .base import DestinationAdapter, DestinationError, DestinationResult
from .mixcloud import MixcloudAdapter, MixcloudClient
from .soundcloud import SoundCloudAdapter, SoundCloudClient

__all__ = [
    "AzuraCastAdapter",
    "AzuraCastClient",
    "DestinationAdapter",
    "DestinationError",
    "DestinationResult",
    "MixcloudAdapter",
    "MixcloudClient",
    "SoundCloudAdapter",
    "SoundCloudClient",
]
