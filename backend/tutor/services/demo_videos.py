"""
Demo avatar library

Static assets that make the avatar cascade always succeed. Lookups are by
tutor display name, case-insensitive, defaulting to "john".
"""
import math
from dataclasses import dataclass, replace
from typing import Dict, List

DEMO_AUDIO_URL = "https://www.soundjay.com/misc/sounds/bell-ringing-05.wav"
DEFAULT_TUTOR = "john"

MIN_TALK_SECONDS = 3
MAX_TALK_SECONDS = 30


@dataclass(frozen=True)
class DemoVideo:
    video_url: str
    audio_url: str
    duration: int
    is_live: bool = True


_DEMO_VIDEOS: Dict[str, DemoVideo] = {
    "john": DemoVideo("https://sample-videos.com/zip/10/mp4/SampleVideo_1280x720_1mb.mp4", DEMO_AUDIO_URL, 10),
    "sarah": DemoVideo("https://sample-videos.com/zip/10/mp4/SampleVideo_1280x720_2mb.mp4", DEMO_AUDIO_URL, 15),
    "mike": DemoVideo("https://sample-videos.com/zip/10/mp4/SampleVideo_1280x720_5mb.mp4", DEMO_AUDIO_URL, 20),
    "emma": DemoVideo("https://sample-videos.com/zip/10/mp4/SampleVideo_1280x720_10mb.mp4", DEMO_AUDIO_URL, 25),
}

_TUTORS: List[dict] = [
    {
        "name": "John",
        "gender": "male",
        "specialty": ["Mathematics", "Physics", "Computer Science"],
        "avatarUrl": "https://images.unsplash.com/photo-1507003211169-0a1dd7228f2d?w=150&h=150&fit=crop&crop=face",
    },
    {
        "name": "Sarah",
        "gender": "female",
        "specialty": ["Biology", "Chemistry", "English"],
        "avatarUrl": "https://images.unsplash.com/photo-1494790108755-2616b612b786?w=150&h=150&fit=crop&crop=face",
    },
    {
        "name": "Mike",
        "gender": "male",
        "specialty": ["History", "Geography", "Economics"],
        "avatarUrl": "https://images.unsplash.com/photo-1472099645785-5658abf4ff4e?w=150&h=150&fit=crop&crop=face",
    },
    {
        "name": "Emma",
        "gender": "female",
        "specialty": ["Literature", "Art", "Music"],
        "avatarUrl": "https://images.unsplash.com/photo-1438761681033-6461ffad8d80?w=150&h=150&fit=crop&crop=face",
    },
]


def estimate_talk_seconds(message: str) -> int:
    """Rough speaking time: one second per ten characters, clamped to [3, 30]"""
    return max(MIN_TALK_SECONDS, min(MAX_TALK_SECONDS, math.ceil(len(message) / 10)))


class DemoVideoLibrary:

    def get_demo_video(self, tutor_name: str) -> DemoVideo:
        return _DEMO_VIDEOS.get((tutor_name or "").strip().lower(), _DEMO_VIDEOS[DEFAULT_TUTOR])

    def generate_talking_response(self, tutor_name: str, message: str) -> DemoVideo:
        """Demo clip for ``tutor_name`` with a duration sized to ``message``"""
        return replace(self.get_demo_video(tutor_name), duration=estimate_talk_seconds(message), is_live=True)

    def available_tutors(self) -> List[dict]:
        return [dict(t) for t in _TUTORS]

    def is_catalogue_tutor(self, tutor_name: str) -> bool:
        return (tutor_name or "").strip().lower() in _DEMO_VIDEOS
