"""Recommendation engine for MitraRec.

This module contains the typed activity and product records, the multi-signal
scorer, the ranker, the data sources the engine reads from, image feature
extraction, and seller analytics over the same activity log.
"""
