"""
Voice Campaign Dialer
Call-progress state machine and statistics for outbound AI-voice campaigns
"""
__version__ = "1.0.0"
