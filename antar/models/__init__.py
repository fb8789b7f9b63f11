"""Pydantic value objects shared across the gamification engine, services and API"""
