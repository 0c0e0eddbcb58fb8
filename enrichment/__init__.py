"""LLM enrichment: structure scraped items, or recall them when scraping falls short."""
