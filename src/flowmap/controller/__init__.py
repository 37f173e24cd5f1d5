"""
Controllers: projection, viewport gestures, scene reconciliation and playback.
"""
