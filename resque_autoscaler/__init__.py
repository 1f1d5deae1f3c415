"""
Backlog-driven autoscaler for Resque worker fleets.

This package samples the number of unfinished Resque jobs in Redis, smooths
the samples over a trailing window and resizes the worker fleet (a Render
service or an ECS service) within operator-set bounds, using separate
scale-up and scale-down delays to avoid flapping.
"""

__version__ = "0.1.0"
