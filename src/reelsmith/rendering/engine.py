"""FFmpeg render backend for locally stored artifacts."""

import asyncio
import hashlib
import logging
from pathlib import Path

from reelsmith.config import get_settings
from reelsmith.models.errors import AssemblyError, FormatError, ReelsmithError
from reelsmith.models.platform import PlatformSpec
from reelsmith.models.video import AssembledVideo
from reelsmith.rendering.backend import RenderBackend
from reelsmith.rendering.ffmpeg_builder import FFmpegCommandBuilder

logger = logging.getLogger(__name__)


def ref_to_path(ref: str) -> Path:
    """Resolve a ``file://`` or bare path reference to a local path."""
    return Path(ref.removeprefix("file://"))


class FFmpegRenderBackend(RenderBackend):
    """Concatenates and reformats local video files with FFmpeg."""

    def __init__(self, output_dir: Path | None = None, timeout_secs: float | None = None):
        self.settings = get_settings()
        self.output_dir = output_dir or self.settings.output_dir
        self.timeout_secs = (
            timeout_secs if timeout_secs is not None else self.settings.render_timeout_secs
        )
        self.builder = FFmpegCommandBuilder(
            binary=self.settings.ffmpeg_binary,
            video_codec=self.settings.output_video_codec,
            audio_codec=self.settings.output_audio_codec,
            crf=self.settings.output_crf,
            preset=self.settings.output_preset,
        )

    async def concatenate(self, artifact_refs: list[str]) -> str:
        paths = [ref_to_path(ref) for ref in artifact_refs]
        missing = [str(p) for p in paths if not p.exists()]
        if missing:
            raise AssemblyError("Segment artifacts not found locally", details={"missing": missing})

        digest = hashlib.sha1("\n".join(str(p) for p in paths).encode()).hexdigest()[:12]
        work_dir = self.output_dir / digest
        work_dir.mkdir(parents=True, exist_ok=True)
        list_path = work_dir / "concat_list.txt"
        list_path.write_text(self.builder.build_concat_list(paths), encoding="utf-8")
        output_path = work_dir / "assembled.mp4"

        try:
            await self._run(self.builder.build_concat_command(list_path, output_path))
        except ReelsmithError as e:
            raise AssemblyError(e.message, details=e.details)
        finally:
            list_path.unlink(missing_ok=True)
        return f"file://{output_path}"

    async def reformat(self, video: AssembledVideo, spec: PlatformSpec) -> str:
        input_path = ref_to_path(video.video_ref)
        output_path = input_path.parent / f"{spec.platform.value}.mp4"
        duration = min(video.duration_secs, spec.max_duration_secs)
        cmd = self.builder.build_reformat_command(input_path, output_path, spec, duration)
        try:
            await self._run(cmd)
        except ReelsmithError as e:
            raise FormatError(e.message, platform=spec.platform.value, details=e.details)
        return f"file://{output_path}"

    async def _run(self, cmd: list[str]) -> None:
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError:
            raise ReelsmithError(
                "FFmpeg not found. Please install FFmpeg.",
                component="rendering",
                details={"command": cmd[0]},
            )

        try:
            _, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout_secs)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            raise ReelsmithError(
                f"FFmpeg timed out after {self.timeout_secs}s",
                component="rendering",
                details={"command": " ".join(cmd)},
            )

        if process.returncode != 0:
            stderr_text = stderr.decode(errors="replace")[-2000:]
            logger.error(f"FFmpeg failed (code {process.returncode}): {' '.join(cmd)}")
            raise ReelsmithError(
                f"FFmpeg exited with code {process.returncode}",
                component="rendering",
                details={"stderr": stderr_text},
            )
