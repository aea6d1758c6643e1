RESUME_SCHEMA = """{
    "name": "FULL NAME IN CAPS",
    "location": "City, Country",
    "phone": "+XX XXXXXXXXXX",
    "email": "email@example.com",
    "summary": ["paragraph1", "paragraph2"],
    "experience": [
        {
            "title": "Job Title",
            "dates": "MMM YYYY – Present/MMM YYYY",
            "company": "Company Name, Location",
            "responsibilities": ["responsibility1", "responsibility2", "..."]
        }
    ],
    "education": [
        {
            "degree": "Degree Name",
            "institution": "Institution Name, Location",
            "year": "YYYY or Pursuing"
        }
    ],
    "certifications": ["cert1", "cert2"],
    "skills": {
        "technical": "comma-separated skills",
        "core": "comma-separated competencies"
    },
    "achievements": ["achievement1", "achievement2"],
    "personal": {
        "nationality": "Country",
        "languages": "Language1 (Level), Language2 (Level)",
        "visaStatus": "Status if mentioned",
        "other": ["other detail 1", "other detail 2"]
    }
}"""

RESUME_RULES = """IMPORTANT RULES:
- Extract ALL information from the resume
- Convert name to ALL CAPS
- Keep professional summary in exactly 2 paragraphs (combine if more, split if one)
- Include ALL job experiences with ALL bullet points
- Preserve ALL dates and details exactly as mentioned
- If a section doesn't exist, use empty array or empty string
- Return ONLY the JSON object, no other text or markdown"""


def build_structuring_prompt(resume_text: str) -> str:
    return (
        "Convert the following resume to a specific template format. "
        "Extract ALL information and return it as a JSON object with this EXACT structure:\n\n"
        f"{RESUME_SCHEMA}\n\n"
        f"{RESUME_RULES}\n\n"
        "Resume to convert:\n"
        f"{resume_text}"
    )
