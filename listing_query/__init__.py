"""
listing-query: filter, sort and pagination translation for listing searches.

Turns loosely-typed listing filters (job feed, training catalog) into request
parameters for a remote API, or into engine-agnostic predicates and
aggregation pipelines executed through a repository.
"""

__version__ = "0.1.0"
