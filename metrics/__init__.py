"""Metric registry, schema inference and scrape orchestration"""
