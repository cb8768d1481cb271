"""
Causal Engine Configuration

Search caps and centrality defaults. Values are read from the environment
once, at import time.
"""

import os


class Config:
    """Base configuration."""

    # Path enumeration (edges); 0 means "node count of the graph"
    MAX_PATH_LENGTH = int(os.environ.get("CAUSAL_MAX_PATH_LENGTH", 0))
    # Paths listed per query; 0 means no cap
    MAX_PATHS = int(os.environ.get("CAUSAL_MAX_PATHS", 500))

    # Minimal separator search
    MAX_SEPARATOR_SIZE = int(os.environ.get("CAUSAL_MAX_SEPARATOR_SIZE", 5))
    MAX_SEPARATOR_CANDIDATES = int(os.environ.get("CAUSAL_MAX_SEPARATOR_CANDIDATES", 16))

    # Backdoor adjustment enumeration
    MAX_BACKDOOR_SET_SIZE = int(os.environ.get("CAUSAL_MAX_BACKDOOR_SET_SIZE", 5))
    MAX_BACKDOOR_CANDIDATES = int(os.environ.get("CAUSAL_MAX_BACKDOOR_CANDIDATES", 12))

    # Frontdoor mediator search
    MAX_FRONTDOOR_CANDIDATES = int(os.environ.get("CAUSAL_MAX_FRONTDOOR_CANDIDATES", 10))

    # Implied independencies
    MAX_CONDITIONING_SIZE = int(os.environ.get("CAUSAL_MAX_CONDITIONING_SIZE", 2))

    # PageRank
    PAGERANK_DAMPING = float(os.environ.get("CAUSAL_PAGERANK_DAMPING", 0.85))
    PAGERANK_MAX_ITERATIONS = int(os.environ.get("CAUSAL_PAGERANK_MAX_ITERATIONS", 50))
    PAGERANK_TOLERANCE = float(os.environ.get("CAUSAL_PAGERANK_TOLERANCE", 1e-6))

    # Eigenvector / Katz
    ITERATIVE_MAX_ITERATIONS = int(os.environ.get("CAUSAL_ITERATIVE_MAX_ITERATIONS", 100))
    KATZ_ALPHA = float(os.environ.get("CAUSAL_KATZ_ALPHA", 0.1))
    KATZ_BETA = float(os.environ.get("CAUSAL_KATZ_BETA", 1.0))

    # Reporting
    CENTRALITY_TOP_N = int(os.environ.get("CAUSAL_CENTRALITY_TOP_N", 5))


class ExhaustiveConfig(Config):
    """Larger caps for offline analysis of mid-sized graphs."""

    MAX_SEPARATOR_SIZE = 8
    MAX_SEPARATOR_CANDIDATES = 24
    MAX_BACKDOOR_SET_SIZE = 8
    MAX_BACKDOOR_CANDIDATES = 16
    MAX_FRONTDOOR_CANDIDATES = 14
    MAX_CONDITIONING_SIZE = 3


class TestingConfig(Config):
    """Testing configuration."""

    MAX_PATH_LENGTH = 0
    MAX_PATHS = 500
    MAX_SEPARATOR_SIZE = 5
    MAX_SEPARATOR_CANDIDATES = 16
    MAX_BACKDOOR_SET_SIZE = 5
    MAX_BACKDOOR_CANDIDATES = 12
    MAX_CONDITIONING_SIZE = 2


config = {
    "default": Config,
    "exhaustive": ExhaustiveConfig,
    "testing": TestingConfig,
}


def get_config():
    """Get configuration based on environment."""
    profile = os.environ.get("CAUSAL_ENGINE_PROFILE", "default")
    return config.get(profile, config["default"])
