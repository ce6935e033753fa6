"""
Solution Outline Consistency Audit

Детерминированная проверка согласованности входных документов Solution Outline:
- Цели (objectives) и их границы scope
- Требования (requirements) и трассировка к целям
- Критерии успеха, допущения и ограничения
- Терминология и глоссарий

Usage:
    python -m so_audit check --objectives docs/objectives.md --requirements docs/requirements.md
"""

__version__ = "1.0.0"
