"""
Heuristic pattern library for applicant field extraction.

Every extracted field is described by a ``FieldSpec``: an ordered tuple of
``FieldRule`` (label, compiled pattern, sources to try), a cleaner, and a
validator. The field extractor walks the rules in order and, for each rule,
the sources in order; the first cleaned value that passes the validator wins.

Nothing here performs I/O or logging, so every rule, cleaner, and validator
can be unit-tested on its own. The vocabularies are deliberately incomplete:
they are tuned against real LinkedIn notification mail and are expected to
grow.

Source names
------------
subject    Message subject line.
body       Decoded text/plain body.
html       text/html body converted to text (one element per line).
raw_html   Undecoded text/html markup, for tag and href patterns.
"""

import html as html_lib
import re
from typing import Callable, NamedTuple, Optional

SUBJECT = "subject"
BODY = "body"
HTML = "html"
RAW_HTML = "raw_html"

DEFAULT_SOURCES = (SUBJECT, BODY, HTML)
BODY_SOURCES = (BODY, HTML)


class FieldRule(NamedTuple):
    label: str
    pattern: re.Pattern
    sources: tuple[str, ...] = DEFAULT_SOURCES


class FieldSpec(NamedTuple):
    field: str
    rules: tuple[FieldRule, ...]
    clean: Callable[[str], Optional[str]]
    validate: Callable[[str], bool]


def _alternation(terms) -> str:
    # Longest first so "United States" wins over any shorter prefix.
    return "|".join(re.escape(t) for t in sorted(set(terms), key=len, reverse=True))


# ---------------------------------------------------------------------------
# Vocabularies
# ---------------------------------------------------------------------------

COUNTRIES = [
    "Argentina", "Australia", "Austria", "Bangladesh", "Belgium", "Brazil",
    "Bulgaria", "Canada", "Chile", "China", "Colombia", "Croatia",
    "Czech Republic", "Denmark", "Egypt", "Estonia", "Finland", "France",
    "Germany", "Ghana", "Greece", "Hong Kong", "Hungary", "India", "Indonesia",
    "Ireland", "Israel", "Italy", "Japan", "Kenya", "Kuwait", "Malaysia",
    "Mexico", "Morocco", "Nepal", "Netherlands", "New Zealand", "Nigeria",
    "Norway", "Oman", "Pakistan", "Peru", "Philippines", "Poland", "Portugal",
    "Qatar", "Romania", "Saudi Arabia", "Singapore", "South Africa",
    "South Korea", "Spain", "Sri Lanka", "Sweden", "Switzerland", "Taiwan",
    "Thailand", "Turkey", "Ukraine", "United Arab Emirates", "UAE",
    "United Kingdom", "UK", "United States", "USA", "Vietnam",
]

INDIAN_STATES = [
    "Andhra Pradesh", "Arunachal Pradesh", "Assam", "Bihar", "Chandigarh",
    "Chhattisgarh", "Delhi", "Goa", "Gujarat", "Haryana", "Himachal Pradesh",
    "Jammu and Kashmir", "Jharkhand", "Karnataka", "Kerala", "Ladakh",
    "Madhya Pradesh", "Maharashtra", "Manipur", "Meghalaya", "Mizoram",
    "Nagaland", "Odisha", "Puducherry", "Punjab", "Rajasthan", "Sikkim",
    "Tamil Nadu", "Telangana", "Tripura", "Uttar Pradesh", "Uttarakhand",
    "West Bengal",
]

US_STATES = [
    "Alabama", "Alaska", "Arizona", "Arkansas", "California", "Colorado",
    "Connecticut", "Delaware", "Florida", "Georgia", "Hawaii", "Idaho",
    "Illinois", "Indiana", "Iowa", "Kansas", "Kentucky", "Louisiana", "Maine",
    "Maryland", "Massachusetts", "Michigan", "Minnesota", "Mississippi",
    "Missouri", "Montana", "Nebraska", "Nevada", "New Hampshire", "New Jersey",
    "New Mexico", "New York", "North Carolina", "North Dakota", "Ohio",
    "Oklahoma", "Oregon", "Pennsylvania", "Rhode Island", "South Carolina",
    "South Dakota", "Tennessee", "Texas", "Utah", "Vermont", "Virginia",
    "Washington", "West Virginia", "Wisconsin", "Wyoming",
]

INDIAN_CITIES = [
    "Agra", "Ahmedabad", "Amritsar", "Aurangabad", "Bangalore", "Bengaluru",
    "Bhopal", "Bhubaneswar", "Chandigarh", "Chennai", "Coimbatore", "Dehradun",
    "Delhi", "Faridabad", "Ghaziabad", "Greater Noida", "Gurgaon", "Gurugram",
    "Guwahati", "Hyderabad", "Indore", "Jaipur", "Jodhpur", "Kanpur", "Kochi",
    "Kolkata", "Kota", "Lucknow", "Ludhiana", "Madurai", "Mangalore", "Mohali",
    "Mumbai", "Mysore", "Nagpur", "Nashik", "Navi Mumbai", "New Delhi",
    "Noida", "Patna", "Pune", "Raipur", "Rajkot", "Ranchi", "Surat", "Thane",
    "Thiruvananthapuram", "Vadodara", "Varanasi", "Visakhapatnam",
]

WORLD_CITIES = [
    "Amsterdam", "Atlanta", "Austin", "Bangkok", "Barcelona", "Beijing",
    "Berlin", "Boston", "Chicago", "Dallas", "Denver", "Dubai", "Dublin",
    "Frankfurt", "Hamburg", "Houston", "Jakarta", "Kuala Lumpur", "Lisbon",
    "London", "Los Angeles", "Madrid", "Manchester", "Manila", "Melbourne",
    "Miami", "Milan", "Montreal", "Munich", "Nairobi", "Paris", "Riyadh",
    "San Francisco", "San Jose", "Seattle", "Seoul", "Shanghai", "Stockholm",
    "Sydney", "Tokyo", "Toronto", "Vancouver", "Warsaw", "Zurich",
]

GEO_TERMS = {t.lower() for t in COUNTRIES + INDIAN_STATES + US_STATES + INDIAN_CITIES + WORLD_CITIES}
GEO_TERMS.update({"north", "south", "east", "west", "remote"})

# Job, skill, technology, and employer vocabulary. A location candidate that
# contains any of these is a misread headline, not a place.
JOB_TERMS = [
    "strategic", "marketing", "transformation", "product", "excellence",
    "go-to-market", "development", "engineering", "management", "analysis",
    "design", "consulting", "sales", "operations", "finance", "hr", "legal",
    "content", "technical", "business", "software", "programming", "coding",
    "developer", "engineer", "manager", "analyst", "consultant", "designer",
    "specialist", "coordinator", "executive", "director", "lead", "senior",
    "junior", "associate", "intern", "trainee", "recruiter", "architect",
    "experience", "skills", "qualifications", "screening", "resume",
    "python", "java", "javascript", "typescript", "react", "angular", "node",
    "php", "ruby", "html", "css", "sql", "mongodb", "mysql", "postgresql",
    "redis", "docker", "kubernetes", "aws", "azure", "gcp", "git", "jenkins",
    "linux", "android", "ios", "django", "flask", "laravel", "vue",
    "tableau", "powerbi", "salesforce", "sap", "microsoft", "google",
    "amazon", "facebook", "netflix", "linkedin", "github", "youtube",
]

# Words that appear around names in notification mail but are never a name.
NAME_STOPWORDS = {
    "new", "application", "applications", "from", "job", "jobs", "candidate",
    "candidates", "applicant", "applicants", "developer", "engineer",
    "manager", "senior", "junior", "lead", "position", "role", "title",
    "strategic", "marketing", "transformation", "product", "excellence",
    "development", "engineering", "management", "analysis", "design",
    "consulting", "sales", "operations", "finance", "hr", "legal", "content",
    "technical", "business", "software", "programming", "coding", "director",
    "head", "analyst", "consultant", "specialist", "executive", "intern",
    "recruiter", "your", "has", "the", "and", "or", "but", "if", "when",
    "where", "what", "how", "why", "this", "that", "these", "those", "view",
    "profile", "linkedin", "hiring", "team", "regards", "thanks", "thank",
    "you", "dear", "hi", "hello", "screening", "questions", "qualifications",
    "resume", "experience", "current", "past", "skills", "education",
    "python", "java", "wrong", "world", "all", "show", "less", "more",
    "message", "reply", "apply", "applied", "premium", "notification",
    "notifications", "inc", "ltd", "llc", "corp", "company", "india",
    "mail", "email", "download", "attachment", "unsubscribe", "help",
}

ROLE_TERMS = [
    "head", "director", "chief", "vice president", "vp", "president", "ceo",
    "coo", "cfo", "cto", "cmo", "cpo", "manager", "senior", "junior", "lead",
    "principal", "staff", "associate", "specialist", "coordinator",
    "executive", "analyst", "consultant", "designer", "architect",
    "programmer", "developer", "engineer", "scientist", "researcher",
    "advisor", "strategist", "planner", "supervisor", "administrator",
    "officer", "representative", "agent", "intern", "trainee", "recruiter",
    "writer", "editor", "marketing", "sales", "operations", "finance",
    "accounting", "human resources", "hr", "legal", "compliance", "product",
    "project", "program", "technical", "business", "data", "software", "web",
    "mobile", "cloud", "devops", "qa", "content", "digital", "brand",
    "frontend", "backend", "full stack", "fullstack", "machine learning",
    "security", "support", "growth", "strategy",
]

# Tokens that on their own carry no title information.
TITLE_BOILERPLATE = {
    "new", "application", "from", "job", "at", "with", "for", "in", "the",
    "and", "or", "but", "your", "has", "this", "that", "candidate",
    "applicant", "resume", "cv", "portfolio", "profile", "about", "contact",
    "skills", "experience", "education", "qualifications", "screening",
    "questions", "answers", "strategic", "marketing", "transformation",
    "excellence", "go-to-market", "a", "an", "of", "to",
}

_COUNTRY_ALT = _alternation(COUNTRIES)
_INDIAN_CITY_ALT = _alternation(INDIAN_CITIES)
_INDIAN_STATE_ALT = _alternation(INDIAN_STATES)

_GEO_RE = re.compile(r"\b(?:" + _alternation(GEO_TERMS) + r")\b", re.IGNORECASE)
_JOB_TERM_RE = re.compile(r"\b(?:" + _alternation(JOB_TERMS) + r")\b", re.IGNORECASE)
_ROLE_RE = re.compile(r"\b(?:" + _alternation(ROLE_TERMS) + r")\b", re.IGNORECASE)

_EMAIL_RE = re.compile(r"[\w.+-]+@[\w-]+(?:\.[\w-]+)+")
_URL_RE = re.compile(r"(?:https?://|www\.)\S+", re.IGNORECASE)
_PHONE_RE = re.compile(r"\+?\d[\d\s().-]{6,}\d")

# An uppercase-initial letter: any letter except ASCII and Latin-1 lowercase.
_UPPER = r"[^\W\d_a-zß-öø-ÿ]"
_NAME_WORD = _UPPER + r"(?:\.[ \t]*)?(?:[^\W\d_]|['’-])+"

# A name: up to six capitalised words, each optionally an initial ("N. Bobo Meitei").
_NAME = _NAME_WORD + r"(?:[ \t]+" + _NAME_WORD + r"){0,5}"

# A place-name part: one to four capitalised words on a single line. The
# bound and the word-start guard keep long comma-less lines linear.
_PLACE = r"(?<![^\W\d_])" + _UPPER + r"[a-zß-öø-ÿ]+(?:[ \t]+" + _UPPER + r"[a-zß-öø-ÿ]+){0,3}"


# ---------------------------------------------------------------------------
# Name
# ---------------------------------------------------------------------------

def clean_name(value: str) -> Optional[str]:
    cleaned = re.sub(r"\s+", " ", value).strip(" .,-")
    return cleaned or None


def is_valid_name(name: str) -> bool:
    if not name or len(name) < 2 or len(name) > 100:
        return False
    if not any(c.isalpha() for c in name) or name.replace(" ", "").isdigit():
        return False
    if len(name.strip(" .")) < 2:
        return False

    # Capitalised, all-caps and O'Brien-style names all start with an uppercase letter.
    if not name[0].isupper() or sum(c.isalpha() for c in name) < 2:
        return False

    if name.lower() in GEO_TERMS:
        return False
    tokens = [t for t in re.split(r"[\s.]+", name.lower()) if t]
    return not any(token in NAME_STOPWORDS for token in tokens)


NAME_RULES = (
    FieldRule(
        "new_application_from",
        re.compile(r"(?i:new application):[ \t]*[^:\n]+?[ \t]+(?i:from)[ \t]+(" + _NAME + ")"),
    ),
    FieldRule(
        "job_application_from",
        re.compile(r"(?i:job application)[^\n]*?[ \t](?i:from)[ \t]+(" + _NAME + ")"),
    ),
    FieldRule(
        "application_from",
        re.compile(r"(?i:application)[^\n]*?[ \t](?i:from)[ \t]+(" + _NAME + ")"),
    ),
    FieldRule(
        "connection_degree",
        re.compile(r"^[ \t]*(" + _NAME + r")[ \t]+(?:·[ \t]*)?(?:1st|2nd|3rd\+?)[ \t]*$", re.MULTILINE),
    ),
    FieldRule(
        "name_above_headline",
        re.compile(
            r"^[ \t]*(" + _NAME + r")[ \t]*\n[^\n]*"
            r"(?:Marketing|Development|Engineering|Management|Analysis|Design|Consulting|"
            r"Developer|Engineer|Manager|Analyst)",
            re.MULTILINE,
        ),
    ),
    FieldRule(
        "standalone_line",
        re.compile(r"^[ \t]*(" + _NAME + r")[ \t]*$", re.MULTILINE),
    ),
    FieldRule(
        "emphasis_tag",
        re.compile(r"<(?:strong|b|h[1-3])\b[^>]*>\s*(" + _NAME + r")\s*</(?:strong|b|h[1-3])>"),
        (RAW_HTML,),
    ),
    FieldRule(
        "initial_surname",
        re.compile(r"\b([A-Z]\.[ \t]*[A-Z][a-z]+(?:[ \t]+[A-Z][a-z]+)*)\b"),
    ),
)


# ---------------------------------------------------------------------------
# Title
# ---------------------------------------------------------------------------

_TITLE_NOISE = re.compile(
    r"\b(?:currently|presently|working|position|role|job|title|company|organization|"
    r"firm|corp|inc|ltd|llc|llp|pvt|private|limited|plc|gmbh)\b\.?",
    re.IGNORECASE,
)


def clean_title(value: str) -> Optional[str]:
    cleaned = value.strip().strip("|-•·, \t")
    cleaned = _TITLE_NOISE.sub(" ", cleaned)
    cleaned = re.sub(r"[^\w\s&/+#-]", " ", cleaned)
    cleaned = re.sub(r"\s+", " ", cleaned).strip(" -/&")
    return cleaned or None


def is_valid_title(title: str) -> bool:
    if not title or len(title) < 3 or len(title) > 150:
        return False
    if title.strip().lower() in TITLE_BOILERPLATE:
        return False
    tokens = re.findall(r"[a-z][a-z-]*", title.lower())
    if tokens and all(token in TITLE_BOILERPLATE for token in tokens):
        return False
    return _ROLE_RE.search(title) is not None


_TITLE_END = r"(?=[ \t]+(?:at|with|for|in)\b|[ \t]*(?:[|•·,\n]|$))"

TITLE_RULES = (
    FieldRule(
        "new_application_title",
        re.compile(r"(?i:new application):[ \t]*([^:\n]+?)[ \t]+(?i:from)[ \t]+[A-Z]"),
    ),
    FieldRule(
        "job_application_title",
        re.compile(r"(?i:job application)[: \t]*(?:[-–][ \t]*)?([^\n–]+?)[ \t]+(?i:from)[ \t]+[A-Z]"),
    ),
    FieldRule(
        "application_title",
        re.compile(r"(?i:application)[: \t]+([^\n–]+?)[ \t]+(?i:from)[ \t]+[A-Z]"),
    ),
    FieldRule(
        "role_at_company",
        re.compile(r"^[ \t]*([A-Z][A-Za-z&/ \t-]*?)[ \t]+at[ \t]+[^·•\n]+?[ \t]*[·•]", re.MULTILINE),
        BODY_SOURCES,
    ),
    FieldRule(
        "seniority_prefix",
        re.compile(
            r"\b((?:Senior|Sr\.|Junior|Jr\.|Lead|Principal|Staff|Head of|Director of|VP of|Chief)"
            r"[ \t]+[A-Z][A-Za-z&/ \t-]*?)" + _TITLE_END,
            re.MULTILINE,
        ),
        BODY_SOURCES,
    ),
    FieldRule(
        "function_role",
        re.compile(
            r"\b((?:Full Stack|Backend|Frontend|Data|Software|Web|Mobile|Cloud|System|Network|"
            r"Database|DevOps|QA|Product|Project|Program|Technical|Business|Content|Marketing|"
            r"Sales|Operations|Finance|HR|Legal)[ \t]+"
            r"(?:Developer|Engineer|Manager|Analyst|Director|Head|Lead|Specialist|Coordinator|"
            r"Executive|Scientist|Architect|Designer))\b"
        ),
        BODY_SOURCES,
    ),
    FieldRule(
        "technology_role",
        re.compile(
            r"\b((?:Python|Java|JavaScript|TypeScript|React|Angular|Node|PHP|Ruby|Golang|Kotlin|Swift)"
            r"[ \t]+(?:Developer|Engineer|Programmer))\b"
        ),
        BODY_SOURCES,
    ),
    FieldRule(
        "labelled_title",
        re.compile(
            r"(?i:job title|position|role|title)[ \t]*:[ \t]*([A-Za-z][A-Za-z &/-]*?)[ \t]*(?:[|•·\n]|$)",
            re.MULTILINE,
        ),
        BODY_SOURCES,
    ),
    FieldRule(
        "emphasis_title",
        re.compile(
            r"<(?:h[1-3]|strong|b)\b[^>]*>\s*([^<]+?)\s+(?:at|position|role|job)\s*</(?:h[1-3]|strong|b)>"
        ),
        (RAW_HTML,),
    ),
)


# ---------------------------------------------------------------------------
# Location
# ---------------------------------------------------------------------------

def clean_location(value: str) -> Optional[str]:
    cleaned = html_lib.unescape(value)
    cleaned = _EMAIL_RE.sub(" ", cleaned)
    cleaned = _URL_RE.sub(" ", cleaned)
    cleaned = _PHONE_RE.sub(" ", cleaned)
    # A headline glued to the place ("Tech Corp · Pune, Maharashtra") keeps the tail.
    cleaned = re.split(r"[·•|]", cleaned)[-1]
    cleaned = re.sub(r"\b\d+\b", " ", cleaned)
    cleaned = re.sub(r"[^\w\s,.-]", " ", cleaned)
    cleaned = re.sub(r"\s+", " ", cleaned)
    cleaned = re.sub(r"\s*,\s*", ", ", cleaned)
    cleaned = re.sub(r"(?:,\s*){2,}", ", ", cleaned)
    cleaned = cleaned.strip(" ,.-")
    return cleaned or None


def is_valid_location(location: str) -> bool:
    if not location or len(location) < 2 or len(location) > 150:
        return False
    if not re.search(r"[A-Za-z]", location) or "|" in location:
        return False
    if _JOB_TERM_RE.search(location):
        return False

    parts = [p.strip() for p in location.split(",") if p.strip()]
    has_comma_structure = len(parts) >= 2
    has_geo_term = _GEO_RE.search(location) is not None
    return has_geo_term or has_comma_structure


LOCATION_RULES = (
    FieldRule(
        "city_region_country",
        re.compile(r"\b(" + _PLACE + r",[ \t]*" + _PLACE + r",[ \t]*(?:" + _COUNTRY_ALT + r"))\b"),
        BODY_SOURCES,
    ),
    FieldRule(
        "indian_city_state",
        re.compile(
            r"\b((?:" + _INDIAN_CITY_ALT + r"),?[ \t]*(?:" + _INDIAN_STATE_ALT + r")(?:,?[ \t]*India)?)\b"
        ),
        BODY_SOURCES,
    ),
    FieldRule(
        "after_separator",
        re.compile(
            r"[·•|][ \t]*(" + _PLACE + r",[ \t]*" + _PLACE + r"(?:,[ \t]*" + _PLACE + r")?)[ \t]*$",
            re.MULTILINE,
        ),
        BODY_SOURCES,
    ),
    FieldRule(
        "city_country",
        re.compile(r"\b(" + _PLACE + r",[ \t]*(?:" + _COUNTRY_ALT + r"))\b"),
        BODY_SOURCES,
    ),
    FieldRule(
        "labelled_location",
        re.compile(
            r"(?i:location|based in|lives in|city)[ \t]*:?[ \t]+(" + _PLACE + r"(?:,[ \t]*" + _PLACE + r")*)"
        ),
        BODY_SOURCES,
    ),
    FieldRule(
        "own_line_pair",
        re.compile(
            r"^[ \t]*(" + _PLACE + r",[ \t]*" + _PLACE + r"(?:,[ \t]*" + _PLACE + r")?)[ \t]*$",
            re.MULTILINE,
        ),
        BODY_SOURCES,
    ),
)


# ---------------------------------------------------------------------------
# Expected compensation
# ---------------------------------------------------------------------------

# Amounts are assumed to be lakh-denominated; 1000 lakh and above is noise.
MAX_COMPENSATION = 1000

_AMOUNT = r"([0-9][0-9,]*(?:\.[0-9]+)?)"
_CURRENCY = r"(?:inr|rs\.?|₹)"
_UNIT = r"(?:lpa|lakhs?|lacs?|crores?|per\s+annum|pa)"


def clean_compensation(value: str) -> Optional[str]:
    cleaned = re.sub(r"[^\d.]", "", value).strip(".")
    if not cleaned:
        return None
    try:
        amount = float(cleaned)
    except ValueError:
        return None
    if 0 < amount < MAX_COMPENSATION:
        return cleaned
    return None


def is_valid_compensation(value: str) -> bool:
    # clean_compensation already enforces the bounds
    return bool(value)


COMPENSATION_RULES = (
    FieldRule(
        "current_ctc",
        re.compile(
            r"\b(?:current|annual|yearly|present)\s+(?:ctc|compensation|salary|package)\b"
            r"[?:\s-]*(?:" + _CURRENCY + r"|is)?\s*" + _AMOUNT,
            re.IGNORECASE,
        ),
        BODY_SOURCES,
    ),
    FieldRule(
        "ctc_question",
        re.compile(
            r"what\s+is\s+your\s+current\s+(?:annual\s+)?ctc\b[?:\s-]*" + _CURRENCY + r"?\s*" + _AMOUNT,
            re.IGNORECASE,
        ),
        BODY_SOURCES,
    ),
    FieldRule(
        "ctc_with_unit",
        re.compile(r"\bctc\b[?:\s-]*" + _CURRENCY + r"?\s*" + _AMOUNT + r"\s*" + _UNIT + r"\b", re.IGNORECASE),
        BODY_SOURCES,
    ),
    FieldRule(
        "expected_ctc",
        re.compile(
            r"\bexpected\s+(?:salary|compensation|ctc|package)\b[?:\s-]*" + _CURRENCY + r"?\s*" + _AMOUNT,
            re.IGNORECASE,
        ),
        BODY_SOURCES,
    ),
    FieldRule(
        "salary_expectation",
        re.compile(r"\bsalary\s+expectations?\b[?:\s-]*" + _CURRENCY + r"?\s*" + _AMOUNT, re.IGNORECASE),
        BODY_SOURCES,
    ),
    FieldRule(
        "currency_prefixed",
        re.compile(_CURRENCY + r"\s*" + _AMOUNT + r"\s*" + _UNIT + r"\b", re.IGNORECASE),
        BODY_SOURCES,
    ),
    FieldRule(
        "lakh_suffix",
        re.compile(r"\b" + _AMOUNT + r"\s*(?:lpa|lakhs?|lacs?)\b", re.IGNORECASE),
        BODY_SOURCES,
    ),
)


# ---------------------------------------------------------------------------
# Project id
# ---------------------------------------------------------------------------

def clean_project_id(value: str) -> Optional[str]:
    return value.strip() or None


def is_valid_project_id(value: str) -> bool:
    return value.isdigit() and 6 <= len(value) <= 15


_PROJECT_SOURCES = (RAW_HTML, BODY, SUBJECT)

PROJECT_ID_RULES = (
    FieldRule(
        "query_parameter",
        re.compile(r"[?&;](?:currentJobId|jobId|projectId|postingId|project|job|posting)=(\d{6,})", re.IGNORECASE),
        _PROJECT_SOURCES,
    ),
    FieldRule(
        "id_assignment",
        re.compile(r"\b(?:currentJobId|jobId|projectId|postingId|project|posting|job)[=:](\d{6,})", re.IGNORECASE),
        _PROJECT_SOURCES,
    ),
    FieldRule(
        "jobs_view_url",
        re.compile(r"linkedin\.com/(?:comm/)?(?:talent/)?jobs/view/(\d{6,})", re.IGNORECASE),
        _PROJECT_SOURCES,
    ),
    FieldRule(
        "talent_hire_url",
        re.compile(r"linkedin\.com/talent/hire/(\d{6,})", re.IGNORECASE),
        _PROJECT_SOURCES,
    ),
    FieldRule(
        "labelled_id",
        re.compile(
            r"\b(?:job|project|posting|application)\s+(?:id|reference|number)\s*[:#]?\s*(\d{6,})",
            re.IGNORECASE,
        ),
        _PROJECT_SOURCES,
    ),
    FieldRule(
        "href_trailing_number",
        re.compile(r"href=[\"'][^\"']*/(\d{10,})[/?\"']", re.IGNORECASE),
        (RAW_HTML,),
    ),
    FieldRule(
        "linkedin_path_number",
        re.compile(r"linkedin\.com/[^\"'\s]*/(\d{10,})", re.IGNORECASE),
        _PROJECT_SOURCES,
    ),
)


# ---------------------------------------------------------------------------
# Screening questions
# ---------------------------------------------------------------------------

MIN_SCREENING_LENGTH = 15

_SCREENING_END = (
    r"(?=\b(?:current\s+experience|past\s+experience|skills|education|additional\s+information|"
    r"contact\s+info(?:rmation)?|view\s+all|show\s+less|view\s+applicant|view\s+profile|"
    r"best\s+regards|kind\s+regards|regards|thank\s+you|thanks)\b|\Z)"
)

_SCREENING_FLAGS = re.IGNORECASE | re.DOTALL


def clean_screening(value: str) -> Optional[str]:
    cleaned = re.sub(r"[•|]", " ", value)
    cleaned = re.sub(r"(?m)^\s*[-*]\s+", "", cleaned)
    cleaned = re.sub(r"^\s*screening\s*:?\s*", "", cleaned, flags=re.IGNORECASE)
    cleaned = re.sub(r"\s+", " ", cleaned).strip()
    return cleaned or None


def is_valid_screening(value: str) -> bool:
    return len(value) > MIN_SCREENING_LENGTH


SCREENING_RULES = (
    FieldRule(
        "qualifications_met",
        re.compile(
            r"(\d+\s+out\s+of\s+\d+\s+(?:preferred\s+)?qualifications?\s+met.*?)" + _SCREENING_END,
            _SCREENING_FLAGS,
        ),
        BODY_SOURCES,
    ),
    FieldRule(
        "screening_section",
        re.compile(
            r"\bscreening\s+(?:qualifications?|questions?)\b[\s:]*(.+?)" + _SCREENING_END,
            _SCREENING_FLAGS,
        ),
        BODY_SOURCES,
    ),
    FieldRule(
        "preferred_qualifications",
        re.compile(r"(preferred\s+qualifications?.*?\bmet\b.*?)" + _SCREENING_END, _SCREENING_FLAGS),
        BODY_SOURCES,
    ),
    FieldRule(
        "qualifications_met_label",
        re.compile(r"(qualifications?\s+met\b.*?)" + _SCREENING_END, _SCREENING_FLAGS),
        BODY_SOURCES,
    ),
    FieldRule(
        "experience_question",
        re.compile(
            r"(how\s+many\s+years\s+of\s+(?:work\s+)?experience\s+do\s+you\s+have.*?)" + _SCREENING_END,
            _SCREENING_FLAGS,
        ),
        BODY_SOURCES,
    ),
    FieldRule(
        "question_block",
        re.compile(
            r"((?:what\s+is|how\s+many|do\s+you|are\s+you|can\s+you)\b.*?"
            r"\b(?:ctc|experience|years?|willing|available|notice\s+period|relocate)\b.*?)" + _SCREENING_END,
            _SCREENING_FLAGS,
        ),
        BODY_SOURCES,
    ),
)


# ---------------------------------------------------------------------------
# Field registry, in report order
# ---------------------------------------------------------------------------

FIELD_SPECS: tuple[FieldSpec, ...] = (
    FieldSpec("name", NAME_RULES, clean_name, is_valid_name),
    FieldSpec("title", TITLE_RULES, clean_title, is_valid_title),
    FieldSpec("location", LOCATION_RULES, clean_location, is_valid_location),
    FieldSpec("expected_compensation", COMPENSATION_RULES, clean_compensation, is_valid_compensation),
    FieldSpec("project_id", PROJECT_ID_RULES, clean_project_id, is_valid_project_id),
    FieldSpec("screening_questions", SCREENING_RULES, clean_screening, is_valid_screening),
)
