"""Video upload pipeline for remote rounds.

Clips stream to Cloud Storage in resumable chunks. The ``remote_videos``
document tracks the transfer (``uploading`` -> ``ready`` | ``failed``); only a
finished upload advances the round.
"""

from __future__ import annotations

import logging
import threading
from typing import IO, TYPE_CHECKING, Callable, Optional

from firebase_admin import firestore
from google.api_core import exceptions as gcp_exceptions

from skatehubba.core.constants import (
    ALLOWED_VIDEO_TYPES,
    MAX_VIDEO_BYTES,
    MAX_VIDEO_DURATION_MS,
    UPLOAD_CHUNK_SIZE,
    VIDEOS_COLLECTION,
)
from skatehubba.errors import UploadFailureError, ValidationError

from .engine import RemoteStateMachine
from .models import RemoteVideo, VideoRole, VideoStatus
from .services import RemoteSkateService

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.document import DocumentReference
    from google.cloud.storage import Bucket

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]


class UploadCancelled(Exception):
    """Raised inside the transfer loop when the handle is cancelled."""


class UploadHandle:
    """Lets another thread stop an upload between chunks."""

    def __init__(self) -> None:
        self._cancelled = threading.Event()

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()


def _error_code(error: Exception) -> str:
    if isinstance(error, gcp_exceptions.GoogleAPICallError):
        return "storage_error"
    if isinstance(error, OSError):
        return "network_error"
    return "unknown"


class VideoUploadService:
    """Validates, stores and attaches round videos."""

    @staticmethod
    def validate_video(
        content_type: Optional[str],
        size_bytes: int,
        duration_ms: int,
        max_bytes: int = MAX_VIDEO_BYTES,
        max_duration_ms: int = MAX_VIDEO_DURATION_MS,
    ) -> str:
        """Check a clip before any network call and return its file extension."""
        mime = (content_type or "").split(";")[0].strip().lower()
        extension = ALLOWED_VIDEO_TYPES.get(mime)
        if not extension:
            allowed = ", ".join(sorted(ALLOWED_VIDEO_TYPES))
            raise ValidationError(f"Unsupported video type. Use one of: {allowed}.")
        if size_bytes <= 0:
            raise ValidationError("Video file is empty.")
        if size_bytes > max_bytes:
            raise ValidationError(
                f"Video must be {max_bytes // (1024 * 1024)} MB or smaller."
            )
        if duration_ms <= 0 or duration_ms > max_duration_ms:
            raise ValidationError(
                f"Video must be between 0 and {max_duration_ms // 1000} seconds long."
            )
        return extension

    @staticmethod
    def storage_path(
        uid: str, game_id: str, round_id: str, video_id: str, extension: str
    ) -> str:
        return f"{VIDEOS_COLLECTION}/{uid}/{game_id}/{round_id}/{video_id}.{extension}"

    @staticmethod
    def upload_video(  # noqa: PLR0913
        db: Client,
        bucket: Bucket,
        uid: str,
        game_id: str,
        round_id: str,
        role: VideoRole | str,
        stream: IO[bytes],
        content_type: str,
        size_bytes: int,
        duration_ms: int,
        on_progress: Optional[ProgressCallback] = None,
        handle: Optional[UploadHandle] = None,
        chunk_size: int = UPLOAD_CHUNK_SIZE,
        max_bytes: int = MAX_VIDEO_BYTES,
        max_duration_ms: int = MAX_VIDEO_DURATION_MS,
    ) -> str:
        """Upload a set or reply clip and advance the round.

        Returns the video id.

        Raises:
            ValidationError: the clip or role is invalid.
            UploadFailureError: the transfer failed or was cancelled. The
                video document is marked failed and the round is untouched.
        """
        try:
            role = VideoRole(role)
        except ValueError as e:
            raise ValidationError("Role must be 'set' or 'reply'.") from e
        extension = VideoUploadService.validate_video(
            content_type, size_bytes, duration_ms, max_bytes, max_duration_ms
        )

        game = RemoteSkateService.get_game(db, game_id)
        game_round = RemoteSkateService.get_round(db, game_id, round_id)
        RemoteStateMachine().check_upload(game, game_round, uid, role)

        video_ref = db.collection(VIDEOS_COLLECTION).document()
        path = VideoUploadService.storage_path(
            uid, game_id, round_id, video_ref.id, extension
        )
        video = RemoteVideo(
            id=video_ref.id,
            uid=uid,
            game_id=game_id,
            round_id=round_id,
            role=role,
            storage_path=path,
            content_type=content_type,
            size_bytes=size_bytes,
            duration_ms=duration_ms,
        )
        video_ref.set({**video.to_dict(), "createdAt": firestore.SERVER_TIMESTAMP})

        try:
            download_url = VideoUploadService._transfer(
                bucket, path, stream, content_type, size_bytes, chunk_size, on_progress, handle
            )
        except UploadCancelled as e:
            logger.info(f"Upload of video {video_ref.id} cancelled by {uid}")
            VideoUploadService._mark_failed(video_ref, "cancelled", "Upload was cancelled.")
            raise UploadFailureError("Upload was cancelled.", error_code="cancelled") from e
        except Exception as e:
            code = _error_code(e)
            logger.error(f"Upload of video {video_ref.id} to {path} failed: {e}")
            VideoUploadService._mark_failed(video_ref, code, str(e))
            raise UploadFailureError(
                "Video upload failed. Please try again.", error_code=code
            ) from e

        video_ref.update(
            {"status": VideoStatus.READY.value, "downloadURL": download_url}
        )
        if role == VideoRole.SET:
            RemoteSkateService.mark_set_complete(
                db, game_id, round_id, uid, video_id=video_ref.id
            )
        else:
            RemoteSkateService.mark_reply_complete(
                db, game_id, round_id, uid, video_id=video_ref.id
            )
        logger.info(f"Video {video_ref.id} ({role.value}) ready for round {round_id}")
        return str(video_ref.id)

    @staticmethod
    def _transfer(  # noqa: PLR0913
        bucket: Bucket,
        path: str,
        stream: IO[bytes],
        content_type: str,
        size_bytes: int,
        chunk_size: int,
        on_progress: Optional[ProgressCallback],
        handle: Optional[UploadHandle],
    ) -> str:
        blob = bucket.blob(path)
        sent = 0
        with blob.open("wb", chunk_size=chunk_size, content_type=content_type) as writer:
            while True:
                if handle is not None and handle.cancelled:
                    raise UploadCancelled()
                chunk = stream.read(chunk_size)
                if not chunk:
                    break
                writer.write(chunk)
                sent += len(chunk)
                if on_progress is not None:
                    on_progress(min(100, sent * 100 // size_bytes))
        blob.make_public()
        return str(blob.public_url)

    @staticmethod
    def _mark_failed(video_ref: DocumentReference, code: str, message: str) -> None:
        video_ref.update(
            {
                "status": VideoStatus.FAILED.value,
                "errorCode": code,
                "errorMessage": message,
            }
        )
