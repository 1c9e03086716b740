from collections.abc import Sequence

JSON_ONLY_INSTRUCTION = (
    "\n\nIMPORTANT: You MUST respond ONLY with valid JSON. "
    "No explanations, no text before or after the JSON."
)

INTENT_SYSTEM_PROMPT = """You are an assistant that detects intent. Choose only one:
- "add_expense" if the user mentions spending, buying, paying for something, or a transaction
- "query" if the user is asking about past spending, totals, or any question about their expenses
- "chitchat" for greetings, jokes, general conversation, or anything not clearly about adding or querying expenses

Respond ONLY with:
{"intent": "<one_of_add_expense|query|chitchat>"}"""

CATEGORY_PROMPT_HEADER = (
    "Map the following user-entered expense category to one of these predefined categories:"
)

EXTRACTION_PROMPT_HEADER = "Extract expense data from text. Return JSON with these fields:"

QUERY_PROMPT_HEADER = (
    "You are a finance assistant. Extract query details from the user's message about expenses."
)

CHITCHAT_SYSTEM_PROMPT = (
    "You are a friendly expense-tracking assistant who replies casually and politely. "
    "Keep replies short, natural and helpful. You help users track their spending. "
    "If they ask about spending or expenses but you can't understand the specific query, "
    "suggest they try asking in a clearer format like "
    '"How much did I spend on [category] [time period]?" or '
    '"What were my expenses [time period]?".'
)


def build_category_prompt(user_category: str, categories: Sequence[str]) -> str:
    return (
        f"{CATEGORY_PROMPT_HEADER}\n"
        f"{', '.join(categories)}\n\n"
        f'User category: "{user_category}"\n\n'
        "Respond ONLY with the SINGLE best matching category from the list. "
        "Choose the closest match."
    )


def build_extraction_prompt(today: str) -> str:
    return f"""{EXTRACTION_PROMPT_HEADER}
- amount (number only, no currency symbol)
- category (descriptive phrase of what was purchased)
- date (YYYY-MM-DD, assume today {today} if not specified)
- title (1-2 words describing the expense, concise and specific)

Examples:
"I spent 200 on groceries today at Walmart" =>
{{"amount": 200, "category": "groceries", "date": "{today}", "title": "Walmart Groceries"}}

"Movie night for 500 on April 1" =>
{{"amount": 500, "category": "movie", "date": "{today[:4]}-04-01", "title": "Movie Night"}}

"Paid 1750 for rent today" =>
{{"amount": 1750, "category": "rent", "date": "{today}", "title": "Monthly Rent"}}

Respond ONLY in this JSON format or this error if invalid:
{{"error": "Could not understand the expense details."}}"""


def build_query_prompt(categories: Sequence[str]) -> str:
    return f"""{QUERY_PROMPT_HEADER}
Return ONLY JSON with these fields:
- category: The expense category they're asking about (null if not specified)
- time_period: The time period they're asking about (today, yesterday, this week, this month, last month, or a specific month name)

Examples:
"How much did I spend on food this month?" => {{"category": "Food & Dining", "time_period": "this month"}}
"Show me yesterday's expenses" => {{"category": null, "time_period": "yesterday"}}
"What did I spend on transportation last month?" => {{"category": "Transportation", "time_period": "last month"}}
"How much did I spend this whole month" => {{"category": null, "time_period": "this month"}}
"What were my expenses in April?" => {{"category": null, "time_period": "april"}}

The available expense categories are: {', '.join(categories)}
Map to the closest category or return null if no category is mentioned."""
