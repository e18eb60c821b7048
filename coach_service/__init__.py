"""
POSECOACH+ Coach Service

Live pose and hand-gesture coaching engine.
"""
