"""Subscription tiers, credits, band-generation allowances, and levels."""
