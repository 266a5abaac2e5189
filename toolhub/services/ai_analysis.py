"""SWOT and personal finance analyses backed by Gemini with canned fallbacks."""

import json
import logging
import math
import re
import time
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from werkzeug.exceptions import BadRequest

from toolhub.services import analysis_history

logger = logging.getLogger(__name__)

TextGenerator = Callable[[str], Optional[str]]

SWOT_TOOL = {"toolSlug": "swot-analysis", "toolName": "SWOT Analysis", "analysisType": "swot"}
COST_PER_TOKEN = 0.000001

INCOME_FIELDS = ("primary_income", "secondary_income", "other_income")
EXPENSE_FIELDS = (
    "housing",
    "transportation",
    "food",
    "utilities",
    "healthcare",
    "entertainment",
    "shopping",
    "other_expenses",
)

FENCE_PATTERN = re.compile(r"```(?:json)?\n?")
TRAILING_COMMA = re.compile(r",\s*([}\]])")


def parse_ai_response(text: str) -> Any:
    """Parse the JSON object a model returned, tolerating fences and sloppy commas."""
    clean = FENCE_PATTERN.sub("", text or "")
    clean = clean.replace("“", '"').replace("”", '"').replace("‘", "'").replace("’", "'")
    clean = TRAILING_COMMA.sub(r"\1", clean).strip()
    try:
        return json.loads(clean)
    except ValueError:
        pass

    start, end = clean.find("{"), clean.rfind("}")
    if start != -1 and end > start:
        try:
            return json.loads(clean[start : end + 1])
        except ValueError:
            pass
    raise ValueError("Could not parse JSON from model response")


def build_swot_prompt(swot_type: str, form_data: Dict[str, Any]) -> str:
    fields = "\n".join(f"{key}: {value}" for key, value in form_data.items())
    return f"""Analyze the following {swot_type} scenario and provide a comprehensive SWOT analysis:

{swot_type.upper()} ANALYSIS
{fields}

Please provide a detailed SWOT analysis in the following JSON format:
{{
  "strengths": ["Strength 1", "Strength 2", "Strength 3"],
  "weaknesses": ["Weakness 1", "Weakness 2", "Weakness 3"],
  "opportunities": ["Opportunity 1", "Opportunity 2", "Opportunity 3"],
  "threats": ["Threat 1", "Threat 2", "Threat 3"],
  "aiTips": {{
    "leverageStrengths": ["Tip 1", "Tip 2"],
    "addressWeaknesses": ["Strategy 1", "Strategy 2"],
    "capitalizeOpportunities": ["Way 1", "Way 2"],
    "mitigateThreats": ["Method 1", "Method 2"],
    "strategicRecommendations": ["Rec 1", "Rec 2"],
    "motivationalSummary": "Encouraging summary message"
  }}
}}

Focus on practical, actionable insights specific to {swot_type} analysis."""


def fallback_swot_analysis(swot_type: str, form_data: Dict[str, Any]) -> Dict[str, Any]:
    t = swot_type
    return {
        "strengths": [
            f"Strong {t} foundation",
            f"Clear {t} objectives",
            f"Experienced approach to {t}",
            f"Well-defined {t} strategy",
        ],
        "weaknesses": [
            f"Limited {t} resources",
            f"Need for {t} improvement",
            f"{t} challenges to address",
            f"Areas for {t} growth",
        ],
        "opportunities": [
            f"{t} expansion potential",
            f"New {t} opportunities",
            f"{t} market growth",
            f"Technology adoption in {t}",
        ],
        "threats": [
            f"{t} competition",
            f"Market changes affecting {t}",
            f"External factors impacting {t}",
            f"{t} regulatory challenges",
        ],
        "aiTips": {
            "leverageStrengths": [f"Focus on your {t} strengths", f"Build upon your {t} advantages"],
            "addressWeaknesses": [f"Develop {t} improvement plans", f"Seek {t} support and resources"],
            "capitalizeOpportunities": [f"Act on {t} opportunities", f"Expand your {t} reach"],
            "mitigateThreats": [f"Monitor {t} threats", f"Develop {t} contingency plans"],
            "strategicRecommendations": [f"Create a comprehensive {t} plan", f"Focus on {t} priorities"],
            "motivationalSummary": (
                f"You have a solid foundation for {t} success. Focus on leveraging your "
                "strengths while addressing areas for improvement."
            ),
        },
        "name": form_data.get("name") or "Your Analysis",
    }


def run_swot_analysis(
    database,
    user_id: Optional[str],
    swot_type: Any,
    form_data: Any,
    force_regenerate: bool,
    request_meta: Dict[str, Any],
    llm: Optional[TextGenerator] = None,
) -> Dict[str, Any]:
    started = time.monotonic()
    if not swot_type or not form_data:
        raise BadRequest("SWOT type and form data are required")
    if not isinstance(form_data, dict):
        raise BadRequest("formData must be an object")
    swot_type = str(swot_type)

    history = database["analysis_history"]
    history_request = {**SWOT_TOOL, "userId": user_id, "parameters": {"swotType": swot_type, "formData": form_data}}

    if user_id and not force_regenerate:
        check = analysis_history.check_for_duplicates(history, history_request)
        existing = check.get("existingAnalysis")
        if check["isDuplicate"] and existing is not None:
            cached_meta = existing.get("metadata") or {}
            return {
                "success": True,
                "result": existing.get("result"),
                "metadata": {
                    "processingTime": int((time.monotonic() - started) * 1000),
                    "tokensUsed": cached_meta.get("tokensUsed", 0),
                    "model": cached_meta.get("model", "cached"),
                    "cost": cached_meta.get("cost", 0),
                    **request_meta,
                },
                "isDuplicate": True,
                "existingAnalysisId": str(existing["_id"]),
                "similarity": check["similarity"],
                "differences": check["differences"],
                "parameterHash": check["parameterHash"],
            }

    prompt = build_swot_prompt(swot_type, form_data)
    analysis = None
    tokens_used = 0
    model_used = "fallback"
    text = llm(prompt) if llm is not None else None
    if text:
        try:
            analysis = parse_ai_response(text)
        except ValueError:
            logger.warning("SWOT model reply was not valid JSON; using fallback")
    if isinstance(analysis, dict):
        model_used = "gemini"
        tokens_used = math.ceil((len(prompt) + len(text)) / 4)
    else:
        if analysis is not None:
            logger.warning("SWOT model reply was not a JSON object; using fallback")
        analysis = fallback_swot_analysis(swot_type, form_data)

    metadata = {
        "processingTime": int((time.monotonic() - started) * 1000),
        "tokensUsed": tokens_used,
        "model": model_used,
        "cost": tokens_used * COST_PER_TOKEN,
        **request_meta,
    }

    analysis_id = None
    if user_id:
        analysis_id = analysis_history.save_analysis_result(history, history_request, analysis, metadata)

    return {
        "success": True,
        "result": analysis,
        "metadata": metadata,
        "analysisId": analysis_id,
        "isDuplicate": False,
    }


def _parse_int(value: Any) -> int:
    match = re.match(r"\s*(-?\d+)", str(value if value is not None else ""))
    return int(match.group(1)) if match else 0


def finance_totals(profile: Dict[str, Any]) -> Dict[str, int]:
    total_income = sum(_parse_int(profile.get(field)) for field in INCOME_FIELDS)
    total_expenses = sum(_parse_int(profile.get(field)) for field in EXPENSE_FIELDS)
    if not total_income:
        raise BadRequest("Income information is required")
    return {
        "totalIncome": total_income,
        "totalExpenses": total_expenses,
        "monthlySurplus": total_income - total_expenses,
    }


def build_finance_prompt(profile: Dict[str, Any], totals: Dict[str, int]) -> str:
    currency = profile.get("currency") or "USD"

    def money(field: str) -> str:
        return f"{profile.get(field) or 0} {currency}"

    expenses = "\n".join(
        f"- {field.replace('_', ' ').title()}: {money(field)}" for field in EXPENSE_FIELDS
    )
    return f"""You are a certified financial advisor with 20+ years of experience. Analyze this financial profile and provide detailed, personalized advice.

PERSONAL PROFILE:
- Name: {profile.get('name') or 'Not specified'}
- Age: {profile.get('age') or 'Not specified'}
- Employment: {profile.get('employment_status') or 'Not specified'}
- Household Size: {profile.get('household_size') or 1} people
- Location: {profile.get('location') or 'Not specified'}
- Country: {profile.get('country') or 'US'}

INCOME ANALYSIS:
- Primary Income: {money('primary_income')} ({profile.get('income_frequency') or 'monthly'})
- Secondary Income: {money('secondary_income')}
- Other Income: {money('other_income')}
- Total Monthly Income: {totals['totalIncome']} {currency}

EXPENSE BREAKDOWN:
{expenses}
- Total Monthly Expenses: {totals['totalExpenses']} {currency}

FINANCIAL POSITION:
- Current Savings: {money('current_savings')}
- Emergency Fund: {money('emergency_fund')}
- Total Debt: {money('debt_total')}
- Monthly Debt Payment: {money('debt_monthly_payment')}
- Average Debt Interest Rate: {profile.get('debt_interest_rate') or 0}%

GOALS & PREFERENCES:
- Short-term Goals: {profile.get('short_term_goals') or 'Not specified'}
- Long-term Goals: {profile.get('long_term_goals') or 'Not specified'}
- Priority Goal: {profile.get('priority_goal') or 'Not specified'}
- Risk Tolerance: {profile.get('risk_tolerance') or 'Moderate'}

Provide a comprehensive analysis in JSON format:
{{
  "healthScore": number (0-100),
  "healthLevel": "Excellent/Good/Fair/Poor",
  "healthSummary": "Brief summary of financial health",
  "insights": ["Key insight", "Spending observation", "Notable strength or concern"],
  "recommendations": [{{"title": "Recommendation title", "description": "Detailed explanation", "priority": "high/medium/low"}}],
  "budgetBreakdown": {{"housing": number, "transportation": number, "food": number, "savings": number, "debt_payment": number, "entertainment": number, "other": number}},
  "actionPlan": ["Next 30 days", "Next 60 days", "Next 90 days"],
  "summaryMessage": "Motivational summary with specific next steps"
}}

Return only the JSON, no additional text."""


def _health_level(score: int) -> str:
    if score >= 80:
        return "Excellent"
    if score >= 60:
        return "Good"
    if score >= 40:
        return "Fair"
    return "Poor"


def fallback_finance_analysis(profile: Dict[str, Any], totals: Dict[str, int]) -> Dict[str, Any]:
    income = totals["totalIncome"]
    surplus = totals["monthlySurplus"]
    savings_rate = surplus / income
    debt_payment = _parse_int(profile.get("debt_monthly_payment"))
    emergency_fund = _parse_int(profile.get("emergency_fund"))
    expenses = totals["totalExpenses"]

    score = 50 + savings_rate * 100 - (debt_payment / income) * 50
    if expenses and emergency_fund >= expenses * 3:
        score += 10
    score = int(max(0, min(100, round(score))))

    recommendations = []
    if surplus < 0:
        recommendations.append(
            {
                "title": "Close the monthly gap",
                "description": f"Expenses exceed income by {-surplus}. Trim discretionary categories first.",
                "priority": "high",
            }
        )
    if expenses and emergency_fund < expenses * 3:
        recommendations.append(
            {
                "title": "Build an emergency fund",
                "description": "Aim for three to six months of expenses in an easy-access account.",
                "priority": "high" if emergency_fund < expenses else "medium",
            }
        )
    if debt_payment:
        recommendations.append(
            {
                "title": "Pay down high-interest debt",
                "description": "Direct extra cash at the debt with the highest interest rate.",
                "priority": "medium",
            }
        )
    recommendations.append(
        {
            "title": "Automate savings",
            "description": "Move a fixed share of each paycheck into savings on payday.",
            "priority": "low",
        }
    )

    return {
        "healthScore": score,
        "healthLevel": _health_level(score),
        "healthSummary": f"You keep {round(savings_rate * 100)}% of your monthly income after expenses.",
        "insights": [
            f"Monthly income is {income} and expenses are {expenses}.",
            f"Your monthly surplus is {surplus}.",
            "Housing and food are usually the largest levers in a budget.",
        ],
        "recommendations": recommendations,
        "budgetBreakdown": {
            "housing": _parse_int(profile.get("housing")),
            "transportation": _parse_int(profile.get("transportation")),
            "food": _parse_int(profile.get("food")),
            "savings": max(surplus, 0),
            "debt_payment": debt_payment,
            "entertainment": _parse_int(profile.get("entertainment")),
            "other": _parse_int(profile.get("other_expenses")) + _parse_int(profile.get("shopping")),
        },
        "actionPlan": [
            "Track every expense for the next 30 days",
            "Set category limits based on what you tracked within 60 days",
            "Review progress and raise automatic savings within 90 days",
        ],
        "summaryMessage": "Small, steady changes add up. Start with the highest priority item above.",
    }


def run_finance_analysis(
    database, profile: Any, ip_address: str, llm: Optional[TextGenerator] = None
) -> Dict[str, Any]:
    if not profile or not isinstance(profile, dict):
        raise BadRequest("Profile data is required")
    totals = finance_totals(profile)

    analysis = None
    model_used = "fallback"
    text = llm(build_finance_prompt(profile, totals)) if llm is not None else None
    if text:
        try:
            analysis = parse_ai_response(text)
            model_used = "gemini"
        except ValueError:
            logger.warning("Finance model reply was not valid JSON; using fallback")
    if not isinstance(analysis, dict):
        analysis = fallback_finance_analysis(profile, totals)
        model_used = "fallback"

    database["finance_consultations"].insert_one(
        {
            "profile": profile,
            "financialSummary": totals,
            "analysis": analysis,
            "model": model_used,
            "createdAt": datetime.utcnow(),
            "ip": ip_address,
        }
    )
    return {"success": True, "analysis": analysis, "financialSummary": totals, "model": model_used}
