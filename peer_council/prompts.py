"""Default prompt templates. settings.yaml may override any of them.

Placeholders are filled with ``str.format``; templates must not contain other braces.
"""

ANSWER_PROMPT = "{query}"

RANKING_PROMPT = """You are evaluating different responses to the following question:

Question: {query}

Here are the responses from different models (anonymized):

{responses}

Your task:
1. First, evaluate each response individually. For each response, explain:
   - What it does well (strengths)
   - What it does poorly (weaknesses)
   - What criteria you're using to evaluate (accuracy, completeness, clarity, relevance, etc.)
   - Your confidence level in this evaluation (HIGH, MEDIUM, or LOW)
2. Then, at the very end of your response, provide a final ranking with confidence scores.

IMPORTANT: Your final ranking MUST be formatted EXACTLY as follows:
- Start with the line "FINAL RANKING:" (all caps, with colon)
- Then list the responses from best to worst as a numbered list
- Each line should be: number, period, space, response label, space, confidence in parentheses
- Format: "1. Response A (HIGH)" or "2. Response B (MEDIUM)" or "3. Response C (LOW)"
- Do not add any other text or explanations in the ranking section

Example of the correct format for your ENTIRE response:

Response A provides good detail on X but misses Y. Criteria: accuracy (good), completeness (partial). Confidence: MEDIUM.
Response B is accurate but lacks depth on Z. Criteria: accuracy (excellent), depth (lacking). Confidence: HIGH.
Response C offers the most comprehensive answer. Criteria: all aspects strong. Confidence: HIGH.

FINAL RANKING:
1. Response C (HIGH)
2. Response B (HIGH)
3. Response A (MEDIUM)

Now provide your evaluation and ranking:"""

SYNTHESIS_PROMPT = """You are the Chairman of an LLM Council. Multiple AI models have provided responses to a user's question, and then ranked each other's responses.

Original Question: {query}

STAGE 1 - Individual Responses:
{responses}

STAGE 2 - Peer Rankings:
{rankings}

Your task as Chairman is to synthesize all of this information into a single, comprehensive, accurate answer to the user's original question. Consider:
- The individual responses and their insights
- The peer rankings and what they reveal about response quality
- Any patterns of agreement or disagreement

Provide a clear, well-reasoned final answer that represents the council's collective wisdom:"""
