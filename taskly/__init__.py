"""
Taskly - задачи, привычки, таймер фокуса и игровая механика
"""

__version__ = "1.0.0"
