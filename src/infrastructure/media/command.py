"""FFmpeg argument construction."""

from typing import Tuple

from domain.models import JobSpec

# Re-encode video to x264 at near-lossless quality, as fast as possible
VIDEO_FLAGS = ('-c:v', 'libx264', '-crf', '18', '-preset', 'ultrafast')
STRIP_VIDEO_FLAGS = ('-vn',)

AUDIO_FLAGS = ('-c:a', 'copy')
STRIP_AUDIO_FLAGS = ('-an',)

# Fragmented mp4 stays playable if the engine is interrupted mid-write
CONTAINER_FLAGS = ('-movflags', '+frag_keyframe+empty_moov', '-f', 'mp4')

OVERWRITE_FLAG = '-y'
NO_OVERWRITE_FLAG = '-n'


def build_command(job: JobSpec, output_path: str) -> Tuple[str, ...]:
    """
    Build the engine argument vector for a job.

    The engine binary is not included. ``extra_args`` go after every flag
    this tool sets and before the output path, so they can tune encoding
    but never replace the destination.

    Args:
        job: Job to build the command for
        output_path: Resolved output path

    Returns:
        Immutable tuple of discrete arguments
    """
    cmd = ['-i', str(job.input)]

    cmd.extend(STRIP_VIDEO_FLAGS if job.strip_video else VIDEO_FLAGS)
    cmd.extend(STRIP_AUDIO_FLAGS if job.strip_audio else AUDIO_FLAGS)
    cmd.extend(CONTAINER_FLAGS)
    cmd.append(OVERWRITE_FLAG if job.overwrite else NO_OVERWRITE_FLAG)

    cmd.extend(job.extra_args)
    cmd.append(str(output_path))

    return tuple(cmd)
