"""Built-in reference corpus: one job description, one case-study brief and the
two scoring rubrics. Each entry is tagged with a category and, for rubrics, a
sub-type so retrieval can filter on them."""

JOB_DESCRIPTION = """
JOB DESCRIPTION - Product Engineer (Backend)

About the job:
You will build new product features alongside a frontend engineer and a product
manager, working in an Agile team.

Key responsibilities:
- Collaborate with frontend engineers and third parties to build robust backend solutions
- Develop and maintain server-side logic for a central database with high throughput
- Design and fine-tune AI prompts that match product requirements
- Build LLM chaining flows where one model's output is reliably passed to another
- Implement Retrieval-Augmented Generation (RAG) by embedding and retrieving context from vector databases
- Handle long-running AI processes with job orchestration and async background workers
- Design safeguards for failure cases of third-party APIs
- Write reusable, testable and efficient code with strong automated test coverage
- Own full product lifecycles from idea to deployment and maintenance

Required skills:
- Backend frameworks (Node.js, Django, Rails) and server-side languages (Python, Java, Ruby, JavaScript)
- Databases (MySQL, PostgreSQL, MongoDB) and schema design
- RESTful APIs, authentication and authorization
- Cloud platforms (AWS, Google Cloud, Azure)
- Scalable application design and automated testing
- Familiarity with LLM APIs, embeddings, vector databases and prompt design

Preferred qualifications:
- 3-5+ years of backend development experience
- Experience integrating AI/LLM features, prompt engineering and RAG systems
- Experience with async job processing
"""

CASE_STUDY_BRIEF = """
CASE STUDY BRIEF - Backend AI Integration Project

Objective:
Build a backend service that automates the initial screening of job applications.

1. API endpoints
   - POST /upload: accept a CV and a project report (PDF) as multipart/form-data
   - POST /evaluate: trigger asynchronous AI evaluation and return a job id
   - GET /result/{id}: return evaluation status and results

2. Evaluation pipeline
   - RAG context retrieval: ingest the job description and scoring rubrics into a vector DB
   - CV evaluation: parse the CV, retrieve job requirements, score a match rate (0-1)
   - Project report evaluation: parse the report, retrieve case study requirements, score (1-5)
   - Final analysis: synthesize a 3-5 sentence summary

3. Long-running process handling
   - POST /evaluate must not block; it returns a job id immediately
   - Use a job queue for background processing
   - Retry failed upstream calls with exponential backoff

4. Error handling
   - Handle LLM API timeouts and rate limiting
   - Control randomness with a low temperature
   - Validate every LLM response
"""

CV_RUBRIC = """
CV SCORING RUBRIC

Technical Skills Match (weight 40%)
Alignment with job requirements: backend, databases, APIs, cloud, AI/LLM.
1 = irrelevant skills; 2 = few overlaps; 3 = partial match; 4 = strong match;
5 = excellent match with AI/LLM exposure.

Experience Level (weight 25%)
Years of experience and project complexity.
1 = under 1 year or trivial projects; 2 = 1-2 years; 3 = 2-3 years with mid-scale projects;
4 = 3-4 years with a solid track record; 5 = 5+ years or high-impact projects.

Relevant Achievements (weight 20%)
Impact of past work: scaling, performance, adoption.
1 = none mentioned; 2 = minimal; 3 = some measurable outcomes; 4 = significant impact;
5 = major measurable impact on scaled systems.

Cultural / Collaboration Fit (weight 15%)
Communication, learning mindset, teamwork and leadership.
1 = not demonstrated; 2 = minimal evidence; 3 = some evidence; 4 = good teamwork;
5 = excellent demonstrated leadership and collaboration.
"""

PROJECT_RUBRIC = """
PROJECT DELIVERABLE SCORING RUBRIC

Correctness - Prompt & Chaining (weight 30%)
Prompt design, LLM chaining and RAG context injection.
1 = not implemented; 2 = minimal attempt; 3 = works partially; 4 = works correctly;
5 = fully correct with thoughtful optimizations.

Code Quality & Structure (weight 25%)
Clean, modular, reusable, tested code.
1 = poor structure; 2 = inconsistent; 3 = decent modularity; 4 = good structure with some tests;
5 = excellent quality with comprehensive tests.

Resilience & Error Handling (weight 20%)
Long-running jobs, retries, randomness control, API failures.
1 = missing; 2 = minimal; 3 = partial; 4 = solid retries and error handling;
5 = robust, production-ready resilience.

Documentation & Explanation (weight 15%)
README clarity, setup instructions, trade-off explanations.
1 = missing; 2 = unclear; 3 = adequate; 4 = clear and helpful; 5 = excellent with insights.

Creativity / Bonus (weight 10%)
Features beyond the requirements.
1 = none; 2 = very basic; 3 = useful extras; 4 = strong enhancements; 5 = outstanding polish.
"""

REFERENCE_DOCUMENTS = [
    {"source": "job_description.txt", "category": "job_description", "sub_type": None,
     "text": JOB_DESCRIPTION},
    {"source": "case_study_brief.txt", "category": "case_study", "sub_type": None,
     "text": CASE_STUDY_BRIEF},
    {"source": "cv_rubric.txt", "category": "rubric", "sub_type": "cv_evaluation",
     "text": CV_RUBRIC},
    {"source": "project_rubric.txt", "category": "rubric", "sub_type": "project_evaluation",
     "text": PROJECT_RUBRIC},
]
