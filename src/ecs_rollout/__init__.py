"""
Build, push and roll out a container image to an ECS service.
"""
