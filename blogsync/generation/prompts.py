"""Prompt templates."""

DESCRIPTION_PROMPT = """You are a helpful assistant that creates searchable descriptions for articles on a personal blog.

Visitors to the blog ask questions about the author's life, projects, opinions and interests, such as "What has the author been working on?" or "What does the author think about X?".

Given the following article, create:
1. A comprehensive description (2-3 paragraphs) that captures the main themes, key points, and essence of the article.
2. 20 sample questions that a visitor might ask that this article could help answer. Include:
   - Personal questions about the author
   - Topic-specific questions about the article content
   - Questions about experiences, opinions, and activities mentioned in the article
   - Questions phrased in different ways (formal and casual)

Format your response exactly like this:
DESCRIPTION:
[Your description here]

QUESTIONS:
1. [Question 1]
2. [Question 2]
...
20. [Question 20]

Article Title: {title}

Article Content:
{content}"""
