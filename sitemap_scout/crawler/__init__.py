"""sitemap_scout.crawler: загрузка, декодирование, троттлинг, эскалация и обход sitemap."""
