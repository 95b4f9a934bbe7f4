"""
Version control helpers used to select the source tree being deployed.
"""
