#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Taskly v1.0 - Claims & Settings
Получение наград за достижения и испытания, покупка наград, настройки
"""

import logging
from dataclasses import replace
from typing import Optional

from taskly.core.models import AppState, AppSettings
from taskly.core.events import (
    MutationResult, StoreOperation, OperationType, EntityType, success, error
)
from taskly.core.leveling import settle_stats
from taskly.utils.datetime_utils import now_iso

logger = logging.getLogger(__name__)

def claim_achievement(state: AppState, achievement_id: int,
                      now: Optional[str] = None) -> MutationResult:
    """Получить награду за выполненное достижение (ровно один раз)"""
    stats = state.stats
    achievement = stats.get_achievement(achievement_id)
    if achievement is None or not achievement.completed or achievement.claimed:
        return MutationResult.unchanged(state)

    now = now or now_iso()
    claimed = replace(achievement, completed_at=now)
    stats = replace(stats, achievements=[
        claimed if a.id == achievement_id else a for a in stats.achievements
    ])
    stats, notifications, operations = settle_stats(state.user_id, stats, achievement.reward, now)

    logger.info(f"🏅 Достижение получено: {achievement.name} (+{achievement.reward})")
    return MutationResult(
        state=replace(state, stats=stats),
        notifications=notifications + [
            success(f"Achievement claimed! +{achievement.reward} points", achievement_id=achievement_id)
        ],
        operations=operations,
    )

def join_challenge(state: AppState, challenge_id: int) -> MutationResult:
    stats = state.stats
    challenge = stats.get_challenge(challenge_id)
    if challenge is None or challenge.joined:
        return MutationResult.unchanged(state)

    stats = replace(stats, challenges=[
        replace(c, joined=True) if c.id == challenge_id else c for c in stats.challenges
    ])
    return MutationResult(
        state=replace(state, stats=stats),
        notifications=[success(f"Joined challenge: {challenge.name}", challenge_id=challenge_id)],
    )

def claim_challenge(state: AppState, challenge_id: int,
                    now: Optional[str] = None) -> MutationResult:
    """Получить награду за выполненное испытание (ровно один раз)"""
    stats = state.stats
    challenge = stats.get_challenge(challenge_id)
    if challenge is None or not challenge.completed or challenge.claimed:
        return MutationResult.unchanged(state)

    stats = replace(stats, challenges=[
        replace(c, claimed=True) if c.id == challenge_id else c for c in stats.challenges
    ])
    stats, notifications, operations = settle_stats(state.user_id, stats, challenge.reward,
                                                    now or now_iso())

    logger.info(f"🎯 Испытание завершено: {challenge.name} (+{challenge.reward})")
    return MutationResult(
        state=replace(state, stats=stats),
        notifications=notifications + [
            success(f"Challenge reward claimed! +{challenge.reward} points", challenge_id=challenge_id)
        ],
        operations=operations,
    )

def claim_reward(state: AppState, reward_id: int, now: Optional[str] = None) -> MutationResult:
    """Купить награду за очки; при нехватке очков состояние не меняется"""
    stats = state.stats
    reward = stats.get_reward(reward_id)
    if reward is None or not reward.unlocked or reward.claimed:
        return MutationResult.unchanged(state)

    if stats.points < reward.cost:
        return MutationResult(
            state=state,
            notifications=[error(
                f"Not enough points to claim this reward. You need {reward.cost} points.",
                reward_id=reward_id
            )],
            changed=False,
        )

    stats = replace(stats, rewards=[
        replace(r, claimed=True) if r.id == reward_id else r for r in stats.rewards
    ])
    stats, notifications, operations = settle_stats(state.user_id, stats, -reward.cost,
                                                    now or now_iso())

    logger.info(f"🎁 Награда получена: {reward.name} (-{reward.cost})")
    return MutationResult(
        state=replace(state, stats=stats),
        notifications=notifications + [success(f"Reward claimed: {reward.name}", reward_id=reward_id)],
        operations=operations,
    )

def update_settings(state: AppState, settings: AppSettings,
                    now: Optional[str] = None) -> MutationResult:
    """Заменить настройки целиком"""
    if not isinstance(settings, AppSettings):
        settings = AppSettings.from_dict(settings)

    data = settings.to_dict()
    data['updated_at'] = now or now_iso()
    return MutationResult(
        state=replace(state, settings=settings),
        notifications=[success("Settings updated successfully!")],
        operations=[StoreOperation(OperationType.UPDATE, EntityType.USER_SETTINGS,
                                   state.user_id, data, user_id=state.user_id)],
    )

__all__ = ['claim_achievement', 'join_challenge', 'claim_challenge', 'claim_reward', 'update_settings']
