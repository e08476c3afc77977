"""
SlideCraft FastAPI Backend
"""
