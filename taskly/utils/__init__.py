"""
Вспомогательные функции Taskly: даты и логирование
"""
