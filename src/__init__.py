"""MitraRec: product recommendations for the Mitra marketplace.

This package ranks marketplace products for a shopper from their recent
browsing activity, combining search matches, category affinity, text
similarity and image similarity into a single score.

Modules:
    api: FastAPI application and REST API endpoints
    recommender: Scoring, ranking, data sources and image features
"""

__version__ = "0.1.0"
