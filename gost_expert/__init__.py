"""
Вова-Стандарт: standards analysis and consultation service backed by Gemini.
"""
