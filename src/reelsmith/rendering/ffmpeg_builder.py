"""FFmpeg command construction."""

from pathlib import Path

from reelsmith.models.platform import PlatformSpec


class FFmpegCommandBuilder:
    """Builds FFmpeg invocations for concatenation and platform reformatting."""

    def __init__(
        self,
        binary: str = "ffmpeg",
        video_codec: str = "libx264",
        audio_codec: str = "aac",
        crf: int = 23,
        preset: str = "medium",
    ):
        self.binary = binary
        self.video_codec = video_codec
        self.audio_codec = audio_codec
        self.crf = crf
        self.preset = preset

    @staticmethod
    def build_concat_list(clip_paths: list[Path]) -> str:
        """Concat demuxer list, one ``file`` line per clip in order."""
        lines = []
        for path in clip_paths:
            escaped = str(path).replace("'", "'\\''")
            lines.append(f"file '{escaped}'")
        return "\n".join(lines) + "\n"

    def build_concat_command(self, list_path: Path, output_path: Path) -> list[str]:
        """Stream-copy concatenation of the clips named in ``list_path``."""
        return [
            self.binary,
            "-y",
            "-f",
            "concat",
            "-safe",
            "0",
            "-i",
            str(list_path),
            "-c",
            "copy",
            str(output_path),
        ]

    @staticmethod
    def build_reformat_filter(width: int, height: int) -> str:
        """Fill the target frame, cropping overflow instead of letterboxing."""
        return (
            f"scale={width}:{height}:force_original_aspect_ratio=increase,"
            f"crop={width}:{height},"
            f"setsar=1"
        )

    def build_reformat_command(
        self,
        input_path: Path,
        output_path: Path,
        spec: PlatformSpec,
        duration_secs: float,
    ) -> list[str]:
        """Reframe to the platform aspect ratio and trim to its duration cap."""
        width, height = spec.resolution
        return [
            self.binary,
            "-y",
            "-i",
            str(input_path),
            "-t",
            f"{duration_secs:.3f}",
            "-vf",
            self.build_reformat_filter(width, height),
            "-c:v",
            self.video_codec,
            "-crf",
            str(self.crf),
            "-preset",
            self.preset,
            "-c:a",
            self.audio_codec,
            "-movflags",
            "+faststart",
            str(output_path),
        ]
