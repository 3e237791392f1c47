"""Countries, cities, company types and niches."""
