"""
Category rule table for transaction categorization.

Rules are evaluated in list order and the first rule that matches wins, so
more specific categories sit above broader ones (e.g. "WHOLE FOODS" is
Groceries before any dining keyword is consulted, "UBER EATS" is dining
before "UBER" is transport).
"""

from ..models import Category


CATEGORY_RULES = [
    {
        "category": Category.INCOME,
        "keywords": [
            "SALARY", "PAYROLL", "PAYCHECK", "WAGES", "DIRECT DEPOSIT",
            "DIRECT DEP", "DIVIDEND", "INTEREST EARNED", "INTEREST PAYMENT",
            "PENSION", "TAX REFUND", "BONUS PAYMENT",
        ],
        "regex_patterns": [
            r"(?i)\b(monthly|weekly|biweekly)\s*(salary|wages|pay)\b",
            r"(?i)\bpay\s*run\b",
        ],
        "description": "Salary, wages and other earnings",
    },
    {
        "category": Category.TRANSFER,
        "keywords": [
            "INTERNAL TRANSFER", "OWN ACCOUNT", "SAVINGS TRANSFER", "ZELLE",
        ],
        "regex_patterns": [
            r"(?i)\btransfer\s+(to|from)\b",
        ],
        "description": "Movements between accounts",
    },
    {
        "category": Category.DEBT_PAYMENTS,
        "keywords": [
            "CREDIT CARD", "CARD PAYMENT", "LOAN PAYMENT", "STUDENT LOAN",
            "AUTO LOAN", "CAR LOAN", "PERSONAL LOAN", "NAVIENT", "SALLIE MAE",
            "KLARNA", "AFTERPAY", "AFFIRM", "INTEREST CHARGE",
        ],
        "regex_patterns": [
            r"(?i)\bloan\b",
            r"(?i)\b(amex|visa|mastercard)\s+payment\b",
        ],
        "description": "Credit card and loan repayments",
    },
    {
        "category": Category.HOUSING,
        "keywords": [
            "MORTGAGE", "LANDLORD", "PROPERTY MANAGEMENT", "APARTMENTS",
            "HOA DUES",
        ],
        "regex_patterns": [
            r"(?i)\brent\b",
        ],
        "description": "Rent and mortgage",
    },
    {
        "category": Category.UTILITIES,
        "keywords": [
            "ELECTRIC", "WATER BILL", "GAS BILL", "UTILITY", "UTILITIES",
            "INTERNET", "COMCAST", "XFINITY", "VERIZON", "T-MOBILE",
            "SPECTRUM", "POWER COMPANY",
        ],
        "regex_patterns": [
            r"(?i)\bat\s*&\s*t\b",
        ],
        "description": "Energy, water, phone and internet",
    },
    {
        "category": Category.INSURANCE,
        "keywords": [
            "INSURANCE", "GEICO", "STATE FARM", "ALLSTATE", "PROGRESSIVE",
        ],
        "regex_patterns": [],
        "description": "Insurance premiums",
    },
    {
        "category": Category.HEALTHCARE,
        "keywords": [
            "PHARMACY", "WALGREENS", "RITE AID", "HOSPITAL", "CLINIC",
            "DENTAL", "DENTIST", "DOCTOR", "MEDICAL", "OPTOMETR",
        ],
        "regex_patterns": [
            r"(?i)\bcvs\b",
        ],
        "description": "Medical and pharmacy",
    },
    {
        "category": Category.GROCERIES,
        "keywords": [
            "GROCERY", "GROCERIES", "SUPERMARKET", "WHOLE FOODS",
            "TRADER JOE", "SAFEWAY", "KROGER", "ALDI", "PUBLIX", "COSTCO",
            "FOOD MARKET",
        ],
        "regex_patterns": [],
        "description": "Supermarkets and grocers",
    },
    {
        "category": Category.FOOD_DINING,
        "keywords": [
            "STARBUCKS", "COFFEE", "CAFE", "RESTAURANT", "MCDONALD", "BURGER",
            "PIZZA", "CHIPOTLE", "DOORDASH", "GRUBHUB", "UBER EATS", "DUNKIN",
            "BAKERY", "DINER",
        ],
        "regex_patterns": [
            r"(?i)\bbar\s*&\s*grill\b",
        ],
        "description": "Restaurants, cafes and takeaway",
    },
    {
        "category": Category.TRANSPORTATION,
        "keywords": [
            "UBER", "LYFT", "SHELL", "CHEVRON", "EXXON", "GAS STATION",
            "PARKING", "TRANSIT", "METRO", "TOLL", "TAXI",
        ],
        "regex_patterns": [
            r"(?i)\bbp\b",
        ],
        "description": "Fuel, rides and public transport",
    },
    {
        "category": Category.TRAVEL,
        "keywords": [
            "AIRLINE", "AIRWAYS", "HOTEL", "MARRIOTT", "HILTON", "AIRBNB",
            "EXPEDIA", "BOOKING.COM",
        ],
        "regex_patterns": [],
        "description": "Flights and accommodation",
    },
    {
        "category": Category.ENTERTAINMENT,
        "keywords": [
            "NETFLIX", "SPOTIFY", "HULU", "DISNEY", "CINEMA", "MOVIE",
            "THEATER", "THEATRE", "STEAM GAMES", "PLAYSTATION", "XBOX",
            "TICKETMASTER", "CONCERT",
        ],
        "regex_patterns": [],
        "description": "Streaming, games and events",
    },
    {
        "category": Category.EDUCATION,
        "keywords": [
            "TUITION", "UNIVERSITY", "COLLEGE", "COURSERA", "UDEMY", "SCHOOL",
        ],
        "regex_patterns": [],
        "description": "Tuition and courses",
    },
    {
        "category": Category.SHOPPING,
        "keywords": [
            "AMAZON", "WALMART", "TARGET", "EBAY", "BEST BUY", "ETSY", "IKEA",
            "MACY", "NORDSTROM", "HOME DEPOT",
        ],
        "regex_patterns": [],
        "description": "Retail and online shopping",
    },
]
