"""WhatsApp and push notification delivery."""
