"""Heart-rate based anxiety severity logic for wearable monitoring.

This package contains the severity classifier and the decision logic built
around it, kept free of storage and transport so it can be tested in isolation.
"""
