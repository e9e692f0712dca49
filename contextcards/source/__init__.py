# Candidate sources for the card loader
