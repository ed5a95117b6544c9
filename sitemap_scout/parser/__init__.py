"""sitemap_scout.parser: разбор sitemap и robots.txt."""
