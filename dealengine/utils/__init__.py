"""Formatting helpers"""
