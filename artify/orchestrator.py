"""Transform request orchestration for the Artify application.

The orchestrator sends the current photo and the chosen style to the art
transform service and tracks what should be displayed. Only the most recently
issued request of each kind may update the display: every request gets a
sequence number and results from superseded requests are dropped on arrival.
Requests are not cancelled in flight.
"""

import asyncio
import logging
import time
from typing import Optional, Tuple

from .codec import PhotoArtifact, SourceKind, artifact_from_data_uri
from .collage import CollageEntry, RecentResultsStore
from .errors import TransformError
from .notifications import Notifier
from .styles import StylePreset, find_style_preset
from .transform import ArtTransformService

# Set up logging
logger = logging.getLogger(__name__)

PREVIEW_FAILED_MESSAGE = "An unexpected error occurred during preview generation."
FINAL_FAILED_MESSAGE = "An unexpected error occurred during art transformation."


class TransformOrchestrator:
    """Issues preview and final transform requests and holds their results."""

    def __init__(self,
                 service: ArtTransformService,
                 notifier: Optional[Notifier] = None,
                 store: Optional[RecentResultsStore] = None):
        """Initialize the orchestrator.

        Args:
            service: Art transform service
            notifier: Where user-facing messages go
            store: Optional collage store for saving results
        """
        self.service = service
        self.notifier = notifier or Notifier()
        self.store = store

        self.selected_style: Optional[StylePreset] = None
        self.preview: Optional[PhotoArtifact] = None
        self.final: Optional[PhotoArtifact] = None

        self._preview_seq = 0
        self._final_seq = 0
        self._preview_pending = 0
        self._final_pending = 0

    @property
    def is_preview_loading(self) -> bool:
        return self._preview_pending == self._preview_seq and self._preview_seq > 0

    @property
    def is_final_loading(self) -> bool:
        return self._final_pending == self._final_seq and self._final_seq > 0

    @property
    def is_loading(self) -> bool:
        return self.is_preview_loading or self.is_final_loading

    # -------------------- Photo changes --------------------

    def on_artifact_changed(self, artifact: Optional[PhotoArtifact]) -> None:
        """React to a new or cleared photo from the acquisition controller.

        Clearing is a full reset. A new photo drops the results of the old one
        and keeps the selected style.
        """
        if artifact is None:
            self.selected_style = None
        self.reset_results()

    def reset_results(self) -> None:
        """Forget the preview and final results, including any in flight."""
        self.preview = None
        self.final = None
        # Outstanding responses become stale
        self._preview_seq += 1
        self._final_seq += 1

    # -------------------- Requests --------------------

    async def select_style(self, artifact: Optional[PhotoArtifact], preset: StylePreset) -> Optional[PhotoArtifact]:
        """Select a style and generate its preview.

        Args:
            artifact: The current photo
            preset: The chosen style

        Returns:
            The preview, or None when nothing is shown
        """
        self.selected_style = preset
        if artifact is None:
            self.notifier.notify(
                "Upload a Photo First",
                "You need to provide a photo before selecting a style.",
            )
            return None
        return await self.request_preview(artifact, preset)

    async def request_preview(self, artifact: PhotoArtifact, preset: StylePreset) -> Optional[PhotoArtifact]:
        """Request a low-resolution preview.

        A newer request supersedes this one; its result is then discarded.
        On failure the service's message is shown and nothing is overwritten.

        Args:
            artifact: The photo to transform
            preset: The style to apply

        Returns:
            The preview if it is the latest request and succeeded, else None
        """
        self._preview_seq += 1
        seq = self._preview_seq
        self._preview_pending = seq
        final_seq_at_issue = self._final_seq

        logger.info(f"Preview request #{seq} for '{preset.name}'")
        try:
            data_uri = await asyncio.to_thread(
                self.service.preview_transform, artifact.data_uri, preset.prompt
            )
            result = artifact_from_data_uri(data_uri, SourceKind.PREVIEW)
        except Exception as e:
            if seq != self._preview_seq:
                logger.info(f"Discarding failure of superseded preview request #{seq}")
                return None
            self._preview_pending = 0
            logger.error(f"Error in preview request #{seq}: {e}")
            self.notifier.error("Preview Failed", _error_text(e, PREVIEW_FAILED_MESSAGE))
            return None

        if seq != self._preview_seq:
            logger.info(f"Discarding result of superseded preview request #{seq}")
            return None

        self._preview_pending = 0
        self.preview = result
        # A final requested before this preview belongs to an earlier selection
        if self._final_seq == final_seq_at_issue:
            self.final = None
        return result

    async def request_final(self, artifact: PhotoArtifact, preset: StylePreset) -> Optional[PhotoArtifact]:
        """Request the full-resolution transformed photo.

        Same contract as :meth:`request_preview`, tracked independently.
        """
        self._final_seq += 1
        seq = self._final_seq
        self._final_pending = seq

        logger.info(f"Final transform request #{seq} for '{preset.name}'")
        try:
            data_uri = await asyncio.to_thread(
                self.service.final_transform, artifact.data_uri, preset.prompt
            )
            result = artifact_from_data_uri(data_uri, SourceKind.FINAL)
        except Exception as e:
            if seq != self._final_seq:
                logger.info(f"Discarding failure of superseded final request #{seq}")
                return None
            self._final_pending = 0
            logger.error(f"Error in final request #{seq}: {e}")
            self.notifier.error("Transform Failed", _error_text(e, FINAL_FAILED_MESSAGE))
            return None

        if seq != self._final_seq:
            logger.info(f"Discarding result of superseded final request #{seq}")
            return None

        self._final_pending = 0
        self.final = result
        self.notifier.notify("Artwork Ready", f"Your '{preset.name}' artwork is ready to download.")
        return result

    # -------------------- Results --------------------

    def display_image(self, photo: Optional[PhotoArtifact]) -> Optional[PhotoArtifact]:
        """The image to show: final result, else preview, else the photo."""
        return self.final or self.preview or photo

    def prepare_download(self, photo: Optional[PhotoArtifact]) -> Optional[Tuple[bytes, str, str]]:
        """The displayed image as (bytes, file name, mime type), or None."""
        image = self.display_image(photo)
        if image is None:
            return None
        filename = f"artify_{int(time.time() * 1000)}{image.extension}"
        return image.payload, filename, image.encoding

    def announce_download(self) -> None:
        self.notifier.notify("Download Started", "Your image is being downloaded.")

    def download(self, photo: Optional[PhotoArtifact]) -> Optional[Tuple[bytes, str, str]]:
        """Prepare the displayed image for download and tell the user.

        Args:
            photo: The current photo

        Returns:
            Tuple of (bytes, file name, mime type), or None if nothing is shown
        """
        prepared = self.prepare_download(photo)
        if prepared is None:
            self.notifier.notify("No Image to Download", "Please select a photo and art style first.")
            return None
        self.announce_download()
        return prepared

    def save_to_collage(self, image: Optional[PhotoArtifact], style_id: Optional[str]) -> Optional[CollageEntry]:
        """Save a result to the recent results store.

        Args:
            image: The image to save
            style_id: Id of the style it was made with

        Returns:
            The stored entry, or None on failure
        """
        if self.store is None:
            self.notifier.error("Save Failed", "No collage store is configured.")
            return None
        if image is None:
            self.notifier.notify("Nothing to Save", "Generate an artwork first.")
            return None

        style = find_style_preset(style_id) if style_id else None
        if style is None:
            self.notifier.error("Save Failed", "Invalid art style.")
            return None

        try:
            entry = self.store.add(image.data_uri, style.name)
        except OSError as e:
            logger.error(f"Error saving to collage: {e}")
            self.notifier.error(
                "Save Failed",
                str(e) or "An unexpected error occurred while saving to collage.",
            )
            return None

        self.notifier.notify("Saved to Collage", f"Your '{style.name}' artwork was added to the collage.")
        return entry


def _error_text(error: Exception, fallback: str) -> str:
    """The message shown for a failed request, verbatim when the service gave one."""
    if isinstance(error, TransformError):
        return error.message or fallback
    return str(error) or fallback
