"""TeamSync - realtime chat and call signaling for team collaboration"""

__version__ = "1.0.0"
