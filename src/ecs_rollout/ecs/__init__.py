"""
ECS task definition and service operations.
"""
