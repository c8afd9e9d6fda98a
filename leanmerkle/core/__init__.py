"""Tree, storage and configuration for leanmerkle"""
