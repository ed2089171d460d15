from __future__ import annotations

from careerdeck.schemas.career import EXTRACTED_EXPERIENCE_LEVELS, UserInput

DEFAULT_CITY = "India (General)"
YEARS_NOT_SPECIFIED = "Not specified"
IMAGE_PLACEHOLDER = "RESUME TEXT: (See attached image)"

MORE_ROLES_INSTRUCTION = (
    "STRICT REQUIREMENT: You MUST generate between 8 to 12 distinct job roles. "
    "Enable HIGH ACCURACY mode: Analyze the resume deeply for transferable skills and niche opportunities. "
    "Do not provide fewer than 8 roles."
)
STANDARD_ROLES_INSTRUCTION = (
    "Generate a focused list of 5 to 7 distinct job roles. "
    "Use STANDARD ACCURACY: Prioritize the most direct and obvious matches for a quick overview."
)
SEARCH_GROUNDING_INSTRUCTION = (
    "IMPORTANT: Use Google Search to find REAL current job trends and demand in India "
    "before generating the JSON."
)

SYSTEM_PROMPT = """
You are ResumeJobSearch-India, a career assistant behind a card-based web application
for Indian job seekers.

Each recommended role is shown on a compact card, so keep the content of every card
clean, structured and short. You MUST still produce the NUMBER of cards requested in
the user prompt.

## CORE JOB

1. Understand the profile
   - Read the resume text (or the attached resume image).
   - Identify skills, education and projects.
   - Audit the resume: ATS compatibility (0-100), formatting issues, content impact,
     key strengths.

2. Suggest realistic roles
   - Propose job roles that fit the Indian market.
   - Estimate demand as "High", "Medium" or "Low".

3. Produce frontend-ready JSON matching the schema below. Output the JSON object only.

## INDIAN CONTEXT

- Education: 10th, 12th, B.Tech, B.Com, MBA, etc.
- Roles: IT, Data, Sales, Ops, Govt Prep.
- Salaries in INR (LPA or per month).

## OUTPUT FORMAT

{
  "summary_of_profile": "...",
  "resume_audit": {
    "ats_compatibility_score": 0,
    "formatting_issues": ["Issue 1", "Issue 2"],
    "content_improvements": ["Tip 1", "Tip 2"],
    "key_strengths": ["Strength 1", "Strength 2"]
  },
  "flashcards": [
    {
      "job_title": "...",
      "demand_level": "High | Medium | Low",
      "match_score": 0,
      "experience_target": "...",
      "why_it_matches": "Strictly 1-2 short sentences explaining the fit.",
      "what_you_do_in_this_job": ["...", "...", "..."],
      "skills_you_already_have": ["..."],
      "skills_to_build_next": ["..."],
      "first_steps_to_get_started": ["...", "...", "..."],
      "estimated_salary_expectation": "...",
      "recommended_certifications": ["..."],
      "google_job_search_query": "...",
      "google_job_search_url": "...",
      "risk_or_caution_note": ""
    }
  ],
  "overall_advice": "...",
  "disclaimer": "..."
}

## LOGIC
- Relevance: match degree and skills.
- Demand: mix High, Medium and Low.
- Career switchers: suggest roles that use transferable skills.
- Deep mode: provide more nuanced, less obvious matches.
- Resume audit: strict but helpful. Base the ATS score on keyword density, structure
  clarity and standard headers. Always list at least 2 strengths.
""".strip()


def build_quantity_instruction(more_roles: bool) -> str:
    return MORE_ROLES_INSTRUCTION if more_roles else STANDARD_ROLES_INSTRUCTION


def build_analysis_prompt(user_input: UserInput) -> str:
    resume_block = (
        f"RESUME TEXT:\n{user_input.resume_text}" if user_input.resume_text.strip() else IMAGE_PLACEHOLDER
    )
    lines = [
        "CANDIDATE PROFILE INPUT:",
        resume_block,
        "",
        "PREFERENCES:",
        f"- City: {user_input.city.strip() or DEFAULT_CITY}",
        f"- Exp Level: {user_input.experience_level}",
        f"- Years Exp: {user_input.years_experience.strip() or YEARS_NOT_SPECIFIED}",
        f"- Mode: {user_input.mode}",
        "",
        "TASK:",
        f"- {build_quantity_instruction(user_input.more_roles)}",
        "- Analyze the profile and map to Indian market opportunities.",
    ]
    if user_input.mode == "search":
        lines.extend(["", SEARCH_GROUNDING_INSTRUCTION])
    return "\n".join(lines)


def build_metadata_prompt(text: str, max_chars: int) -> str:
    levels = ", ".join(f"'{level}'" for level in EXTRACTED_EXPERIENCE_LEVELS)
    return f"""
Analyze the following resume/profile text and extract key details into a JSON object.

Output JSON Schema:
{{
  "city": "string (inferred current location, e.g. 'Bengaluru', or empty if unknown)",
  "experienceLevel": "string (one of: {levels})",
  "yearsExperience": "string (numeric string e.g. '4', or empty)"
}}

Rules:
- 'student': Still in college or looking for internship.
- 'fresher': Graduated, 0-1 years exp.
- '1-3_years': 1 to 3 years.
- '3-5_years': 3 to 5 years.
- '5_plus_years': 5+ years.

Text to Analyze:
{text[:max_chars]}
""".strip()


def build_interview_prep_prompt(role: str, resume_text: str, max_chars: int) -> str:
    return f"""
You are an expert technical interviewer for the Indian job market.

Role: {role}
Candidate Resume Snippet: {resume_text[:max_chars]}...

Task: Generate 3 likely interview questions and identify 3 missing keywords for this candidate.

Output JSON format:
{{
  "questions": [
    {{
      "question": "The question text",
      "type": "Technical" or "Behavioral",
      "tip": "A short, specific tip on how THIS candidate should answer based on their resume"
    }}
  ],
  "missing_keywords": ["keyword1", "keyword2", "keyword3"]
}}

Requirements:
- 2 Technical questions, 1 Behavioral/HR question.
- Keep it realistic for the role.
""".strip()


def build_cover_letter_prompt(role: str, resume_text: str, max_chars: int) -> str:
    return f"""
Act as a professional career coach for the Indian job market.
Write a tailored, professional cover letter for the role of "{role}".

Resume Context:
{resume_text[:max_chars]}

Requirements:
1. Tone: Professional, enthusiastic, but grounded (not overly flowery).
2. Length: Concise (under 250 words).
3. Content: Highlight 2-3 specific skills/projects from the resume that match the {role} role.
4. Format: Standard business letter body (Salutation -> Hook -> Skills -> Close).
5. Placeholders: Use [brackets] for things the user must fill (e.g., [Company Name], [Hiring Manager Name]).
6. Output: JUST the letter text, no markdown code blocks.
""".strip()
