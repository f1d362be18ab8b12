"""
splice.render - Export side of the timeline.

- plan: compile a snapshot into trim/concat steps
- ffmpeg: execute a plan with FFmpeg
- edl: CMX 3600 EDL of the exported sequence
"""

from __future__ import annotations
