"""Evacuee support system case service."""
