"""Static survey data: languages, question catalogue and bundled translations."""
