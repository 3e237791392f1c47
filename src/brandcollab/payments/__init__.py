"""Payment processing (Stripe Checkout for Pro)."""
