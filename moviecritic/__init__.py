"""MovieCritic - movie reviews backed by TMDB metadata"""

__version__ = "1.0.0"
