"""
Task subsystem.

Components:
- scheduler.py: bounded-concurrency wave scheduler with retry-after-cooldown
"""
