"""Storefront gateway: Square and Pinecone proxy routes for the bookstore frontend."""

__version__ = "1.0.0"
