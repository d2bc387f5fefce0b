"""Wiring of the Artify components into one application object."""

import logging
from typing import Any, Callable, Dict, Optional

from .acquisition import AcquisitionController
from .camera import CaptureSession, MediaDevices, OpenCVMediaDevices
from .codec import PhotoArtifact
from .collage import RecentResultsStore
from .config import load_config
from .notifications import Notification, Notifier
from .orchestrator import TransformOrchestrator
from .transform import ArtTransformService, create_transform_service

# Set up logging
logger = logging.getLogger(__name__)


class ArtifyApp:
    """Holds the acquisition controller, orchestrator and store of one user session.

    The orchestrator is subscribed to photo changes, so clearing the photo
    also clears the selected style and any results.
    """

    def __init__(self,
                 config: Optional[Dict[str, Any]] = None,
                 devices: Optional[MediaDevices] = None,
                 service: Optional[ArtTransformService] = None,
                 store: Optional[RecentResultsStore] = None,
                 notification_sink: Optional[Callable[[Notification], None]] = None):
        """Initialize the application.

        Args:
            config: Configuration dictionary, loaded with load_config() if omitted
            devices: Camera backend, OpenCV by default
            service: Art transform service, chosen from the config by default
            store: Collage store, at config['collage_path'] by default
            notification_sink: Called with every notification
        """
        self.config = dict(config) if config is not None else load_config()
        self.notifier = Notifier(notification_sink)

        self.devices = devices or OpenCVMediaDevices(dict(self.config))
        self.session = CaptureSession(self.devices, {
            'first_frame_timeout': self.config.get('first_frame_timeout', 3.0),
            'switch_settle_delay': self.config.get('switch_settle_delay', 0.3),
        })
        self.store = store or RecentResultsStore(
            self.config['collage_path'],
            self.config.get('max_collage_entries', 50),
        )
        self.service = service or create_transform_service(self.config)

        self.acquisition = AcquisitionController(self.session, self.notifier)
        self.orchestrator = TransformOrchestrator(self.service, self.notifier, self.store)
        self.acquisition.subscribe(self.orchestrator.on_artifact_changed)

    @property
    def photo(self) -> Optional[PhotoArtifact]:
        return self.acquisition.artifact

    @property
    def display_image(self) -> Optional[PhotoArtifact]:
        return self.orchestrator.display_image(self.photo)

    async def close(self) -> None:
        await self.acquisition.close()
