"""
API endpoint modules for VoiceScreen
"""

from voicescreen.api.endpoints import audio, evaluation, interview

__all__ = ["interview", "evaluation", "audio"]
