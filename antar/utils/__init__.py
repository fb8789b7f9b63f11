"""Shared helpers: input sanitisation and date/time handling"""
