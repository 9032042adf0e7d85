"""
Keyword lists for scope classification.

Matched as lowercase substrings in list order; the first hit decides. Queries
matching neither list are handed to the LLM classifier.
"""

MEDICAL_KEYWORDS: tuple[str, ...] = (
    # Common conditions
    "diabetes",
    "cancer",
    "covid",
    "coronavirus",
    "flu",
    "asthma",
    "hypertension",
    "arthritis",
    "depression",
    "anxiety",
    # Symptoms
    "pain",
    "fever",
    "bleeding",
    "nausea",
    "cough",
    "headache",
    "fatigue",
    "dizzy",
    "vomiting",
    # Medical terms
    "medication",
    "medicine",
    "treatment",
    "prescription",
    "diagnosis",
    "symptom",
    "disease",
    "infection",
    "therapy",
    "surgery",
    # Body parts
    "heart",
    "lung",
    "kidney",
    "liver",
    "stomach",
    "brain",
    "blood",
    # Healthcare
    "doctor",
    "hospital",
    "clinic",
    "patient",
)

NON_MEDICAL_KEYWORDS: tuple[str, ...] = (
    # Weather
    "weather",
    "temperature",
    "forecast",
    "rain",
    "snow",
    # Food/Cooking
    "recipe",
    "restaurant",
    "pizza",
    "burger",
    "cooking",
    # Entertainment
    "movie",
    "music",
    "song",
    "game",
    "sport",
    "football",
    "basketball",
    # Technology
    "computer",
    "phone",
    "app",
    "software",
    # Travel
    "hotel",
    "flight",
    "travel",
    "vacation",
    # General
    "news",
    "stock",
    "price",
    "joke",
)
