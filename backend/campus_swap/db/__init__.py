"""ORM metadata for students, products, exchange requests, chat and notifications."""
