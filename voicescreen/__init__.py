"""
VoiceScreen - Timed Voice Screening Interviews

Runs a six-question spoken interview against a candidate's resume,
captures one audio answer per question under a countdown, then
transcribes and scores every answer in a single batch.
"""

__version__ = "0.1.0"
__author__ = "VoiceScreen Team"
