"""CartRec: association-rule product recommendations for shopping carts.

This package mines frequent item combinations from completed orders with the
Apriori algorithm and turns the resulting association rules into ranked
"customers also bought" recommendations for an in-progress cart.

Modules:
    api: FastAPI application and REST API endpoints
    recommender: Transaction building, itemset/rule mining and scoring
"""

__version__ = "0.1.0"
