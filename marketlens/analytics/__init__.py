"""Indicators, signals, sentiment and ranking over computed quote rows."""
