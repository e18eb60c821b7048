"""
POSECOACH+ Core Module
"""
