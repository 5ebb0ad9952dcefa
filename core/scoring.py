#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
HabitCheck v1.0 - Scoring Engine
Очки привычек с учетом сложности, нормализация и уровни признания

Версия: 1.0.0
Дата: 2026-10-19
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional, Any
import logging

from core.models import Difficulty, Goal, HabitStreak, validate_enum

logger = logging.getLogger(__name__)

# ===== TABLES =====

DIFFICULTY_MULTIPLIERS: Dict[Difficulty, float] = {
    Difficulty.EASY: 1,
    Difficulty.MEDIUM: 1.5,
    Difficulty.HARD: 2,
}

# Очки за составляющие сырого счета
POINTS_PER_STREAK_DAY = 10
POINTS_PER_COMPLETION = 2
POINTS_PER_BEST_STREAK_DAY = 5

# Пороги уровня отдельной привычки (для сложных умножаются на HARD_THRESHOLD_FACTOR)
HABIT_LEVEL_THRESHOLDS = [
    ("diamond", 1000),
    ("platinum", 500),
    ("gold", 250),
    ("silver", 100),
    ("bronze", 50),
]
HARD_THRESHOLD_FACTOR = 0.8

# (минимальный перцентиль, бонус)
PERCENTILE_BONUSES = [
    (90, 1.2),
    (75, 1.1),
]

HABIT_LEVEL_CONTENT = {
    "diamond": {
        "title": ("Diamond Achiever", "Diamond Warrior"),
        "description": ("Achieved exceptional consistency and dedication",
                        "Mastered the most challenging habits with exceptional consistency"),
    },
    "platinum": {
        "title": ("Platinum Performer", "Platinum Champion"),
        "description": ("Demonstrated remarkable consistency and growth",
                        "Conquered difficult habits with remarkable persistence"),
    },
    "gold": {
        "title": ("Gold Standard", "Gold Conqueror"),
        "description": ("Maintained excellent habit consistency",
                        "Overcame challenging habits with strong determination"),
    },
    "silver": {
        "title": ("Silver Streak", "Silver Challenger"),
        "description": ("Built solid habit foundations",
                        "Tackled difficult habits with growing confidence"),
    },
    "bronze": {
        "title": ("Bronze Builder", "Bronze Brave"),
        "description": ("Beginning the journey of habit formation",
                        "Courageously started challenging habits"),
    },
}

# Лестница общего уровня пользователя по сумме скорректированных очков
OVERALL_LEVELS = [
    ("diamond", 2000, "Habit Master", "Achieved mastery across multiple challenging habits"),
    ("platinum", 1000, "Habit Expert", "Demonstrated expertise in habit formation and maintenance"),
    ("gold", 500, "Habit Enthusiast", "Built strong foundations across multiple habits"),
    ("silver", 200, "Habit Builder", "Making steady progress in habit development"),
    ("bronze", 50, "Habit Starter", "Beginning the journey of positive change"),
]

DIFFICULTY_ENCOURAGEMENT = {
    Difficulty.HARD: {
        "completion_message": "Incredible! You conquered a challenging habit today! 💪",
        "streak_message": "Your determination with this difficult habit is truly inspiring! 🔥",
        "milestone_message": "Amazing milestone! Hard habits like this build real character! 🏆",
    },
    Difficulty.MEDIUM: {
        "completion_message": "Great job! You're building solid habits! 👏",
        "streak_message": "Your consistency is paying off! Keep it up! ⭐",
        "milestone_message": "Fantastic milestone! Your dedication is showing! 🎯",
    },
    Difficulty.EASY: {
        "completion_message": "Nice work! Every step counts! ✨",
        "streak_message": "Building momentum with consistent action! 📈",
        "milestone_message": "Good milestone! Small steps lead to big changes! 🌟",
    },
}

# ===== DATA CLASSES =====

@dataclass
class HabitScore:
    habit_id: str
    raw_score: int
    adjusted_score: int
    difficulty: Difficulty
    multiplier: float
    streak_length: int
    total_completions: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'habit_id': self.habit_id,
            'raw_score': self.raw_score,
            'adjusted_score': self.adjusted_score,
            'difficulty': self.difficulty.value,
            'multiplier': self.multiplier,
            'streak_length': self.streak_length,
            'total_completions': self.total_completions
        }

@dataclass
class NormalizedScore:
    habit_id: str
    normalized_score: float
    percentile: int
    rank: int
    total_habits: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'habit_id': self.habit_id,
            'normalized_score': self.normalized_score,
            'percentile': self.percentile,
            'rank': self.rank,
            'total_habits': self.total_habits
        }

@dataclass
class RecognitionLevel:
    level: str
    title: str
    description: str
    threshold: float
    is_hard_habit_bonus: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            'level': self.level,
            'title': self.title,
            'description': self.description,
            'threshold': self.threshold,
            'is_hard_habit_bonus': self.is_hard_habit_bonus
        }

@dataclass
class OverallScore:
    total_raw_score: int
    total_adjusted_score: int
    average_multiplier: float
    hard_habit_count: int
    total_habits: int
    overall_level: RecognitionLevel

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_raw_score': self.total_raw_score,
            'total_adjusted_score': self.total_adjusted_score,
            'average_multiplier': self.average_multiplier,
            'hard_habit_count': self.hard_habit_count,
            'total_habits': self.total_habits,
            'overall_level': self.overall_level.to_dict()
        }

@dataclass
class ScoreProgression:
    raw_score_change: int
    adjusted_score_change: int
    progress_percentage: int
    trend: str  # improving / stable / declining

# ===== HELPERS =====

def round_half_up(value) -> int:
    """Округление 0.5 вверх, в отличие от банковского round()"""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))

def get_difficulty_multiplier(difficulty) -> float:
    return DIFFICULTY_MULTIPLIERS[validate_enum(difficulty, Difficulty, "difficulty")]

# ===== SCORING =====

def calculate_habit_score(streak: HabitStreak, goal: Goal, total_completions: int = 0) -> HabitScore:
    """Сырой и скорректированный по сложности счет привычки"""
    multiplier = get_difficulty_multiplier(goal.difficulty)

    raw_score = (
        streak.current_streak * POINTS_PER_STREAK_DAY
        + total_completions * POINTS_PER_COMPLETION
        + streak.best_streak * POINTS_PER_BEST_STREAK_DAY
    )
    adjusted_score = round_half_up(Decimal(raw_score) * Decimal(str(multiplier)))

    return HabitScore(
        habit_id=streak.habit_id,
        raw_score=raw_score,
        adjusted_score=adjusted_score,
        difficulty=goal.difficulty,
        multiplier=multiplier,
        streak_length=streak.current_streak,
        total_completions=total_completions,
    )

def calculate_multiple_habit_scores(streaks: List[HabitStreak], goals: List[Goal],
                                    completion_counts: Optional[Dict[str, int]] = None) -> List[HabitScore]:
    """Стрики без цели (удаленная привычка) пропускаются"""
    completion_counts = completion_counts or {}
    goals_by_id = {goal.goal_id: goal for goal in goals}

    scores = []
    for streak in streaks:
        goal = goals_by_id.get(streak.habit_id)
        if goal is None:
            logger.debug(f"Стрик {streak.habit_id} без цели пропущен")
            continue
        scores.append(calculate_habit_score(streak, goal, completion_counts.get(streak.habit_id, 0)))
    return scores

def normalize_habit_scores(scores: List[HabitScore]) -> List[NormalizedScore]:
    """
    Перцентиль внутри группы сложности и общий ранг.

    Ранг 1 - наибольший adjusted_score во всем наборе, при равенстве
    побеждает меньший habit_id. Результат упорядочен по рангу.
    """
    if not scores:
        return []

    groups: Dict[Difficulty, List[int]] = {}
    for score in scores:
        groups.setdefault(score.difficulty, []).append(score.adjusted_score)

    ranked = sorted(scores, key=lambda s: (-s.adjusted_score, s.habit_id))
    total = len(scores)

    normalized = []
    for rank, score in enumerate(ranked, start=1):
        group = groups[score.difficulty]
        not_above = sum(1 for value in group if value <= score.adjusted_score)
        percentile = round_half_up(Decimal(100 * (not_above - 1)) / Decimal(max(len(group) - 1, 1)))
        normalized.append(NormalizedScore(
            habit_id=score.habit_id,
            normalized_score=percentile / 100,
            percentile=percentile,
            rank=rank,
            total_habits=total,
        ))
    return normalized

def get_recognition_level(score: HabitScore, normalized_score: NormalizedScore) -> RecognitionLevel:
    """Уровень признания привычки. Сложные привычки получают особые титулы"""
    is_hard = score.difficulty == Difficulty.HARD
    factor = HARD_THRESHOLD_FACTOR if is_hard else 1.0

    bonus = 1.0
    for min_percentile, percentile_bonus in PERCENTILE_BONUSES:
        if normalized_score.percentile >= min_percentile:
            bonus = percentile_bonus
            break

    effective_score = score.adjusted_score * bonus

    # bronze - нижняя ступень и значение по умолчанию
    level, threshold = HABIT_LEVEL_THRESHOLDS[-1]
    for candidate, base_threshold in HABIT_LEVEL_THRESHOLDS:
        if effective_score >= base_threshold * factor:
            level, threshold = candidate, base_threshold
            break

    content = HABIT_LEVEL_CONTENT[level]
    variant = 1 if is_hard else 0
    return RecognitionLevel(
        level=level,
        title=content["title"][variant],
        description=content["description"][variant],
        threshold=threshold * factor,
        is_hard_habit_bonus=is_hard,
    )

def calculate_overall_user_score(scores: List[HabitScore]) -> OverallScore:
    """Сводный счет пользователя по всем привычкам"""
    if not scores:
        return OverallScore(
            total_raw_score=0,
            total_adjusted_score=0,
            average_multiplier=1,
            hard_habit_count=0,
            total_habits=0,
            overall_level=RecognitionLevel(
                level="bronze",
                title="Getting Started",
                description="Ready to begin your habit journey",
                threshold=0,
                is_hard_habit_bonus=False,
            ),
        )

    total_raw = sum(score.raw_score for score in scores)
    total_adjusted = sum(score.adjusted_score for score in scores)
    average_multiplier = sum(score.multiplier for score in scores) / len(scores)
    hard_count = sum(1 for score in scores if score.difficulty == Difficulty.HARD)

    level, threshold, title, description = OVERALL_LEVELS[-1]
    for candidate in OVERALL_LEVELS:
        if total_adjusted >= candidate[1]:
            level, threshold, title, description = candidate
            break

    return OverallScore(
        total_raw_score=total_raw,
        total_adjusted_score=total_adjusted,
        average_multiplier=average_multiplier,
        hard_habit_count=hard_count,
        total_habits=len(scores),
        overall_level=RecognitionLevel(level, title, description, threshold, hard_count > 0),
    )

def get_difficulty_encouragement(difficulty) -> Dict[str, str]:
    return dict(DIFFICULTY_ENCOURAGEMENT[validate_enum(difficulty, Difficulty, "difficulty")])

def calculate_score_progression(current: HabitScore, previous: Optional[HabitScore] = None) -> ScoreProgression:
    if previous is None:
        return ScoreProgression(current.raw_score, current.adjusted_score, 100, "improving")

    raw_change = current.raw_score - previous.raw_score
    adjusted_change = current.adjusted_score - previous.adjusted_score

    if previous.adjusted_score > 0:
        percentage = round_half_up(Decimal(adjusted_change * 100) / Decimal(previous.adjusted_score))
    else:
        percentage = 100

    if adjusted_change > 0:
        trend = "improving"
    elif adjusted_change == 0:
        trend = "stable"
    else:
        trend = "declining"

    return ScoreProgression(raw_change, adjusted_change, percentage, trend)
