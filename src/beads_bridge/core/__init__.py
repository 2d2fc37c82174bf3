"""
Core sync and orchestration engine.
"""
