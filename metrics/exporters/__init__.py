"""Exposition of scraped metrics"""
