from concurrent.futures import ALL_COMPLETED, ThreadPoolExecutor, wait
from typing import Dict, List, Optional

from lms.domain.models.db_models import GradedQuestion, Question
from lms.infrastructure.config import settings
from lms.services.ai_ports import AIGradingPort
from lms.services.fallback_grader import grade_objective
from lms_utils.logger_utils import logger


class QuestionGrader:
    """
    Grades quiz questions. Objective questions are always graded locally;
    short answers go to the AI grader when one is configured and fall back
    to the local heuristic whenever it fails.
    """

    def __init__(self, ai_grading: Optional[AIGradingPort] = None, max_workers: int = None):
        self.ai_grading = ai_grading
        self.max_workers = max_workers or settings.GRADING_MAX_WORKERS

    def grade_locally(self, question: Question, answer: str) -> GradedQuestion:
        return GradedQuestion.build(question, answer, grade_objective(question, answer))

    def grade(self, question: Question, answer: str) -> GradedQuestion:
        answer = answer if answer is not None else ""

        if question.is_objective or self.ai_grading is None:
            return self.grade_locally(question, answer)

        try:
            grading = self.ai_grading.grade_free_text(question, question.reference_answer, answer)
            return GradedQuestion.build(question, answer, grading)
        except Exception as e:
            # Covers AIClientError, ParsingError and anything unexpected from
            # the vendor SDK. A question must never be left ungraded.
            logger.warning(
                f"AI grading unavailable for question {question.id}, using local fallback: {e}",
                extra={"question_id": question.id},
            )
            return self.grade_locally(question, answer)

    def grade_all(
        self,
        questions: List[Question],
        answers: Dict[str, str],
        timeout: float = None,
    ) -> List[GradedQuestion]:
        """
        Grade every question in parallel and return the results in quiz
        order. Questions still running after `timeout` seconds are graded
        locally instead; their AI calls are abandoned.
        """
        timeout = timeout if timeout is not None else settings.GRADING_TIMEOUT_SECONDS
        results: List[Optional[GradedQuestion]] = [None] * len(questions)

        executor = ThreadPoolExecutor(max_workers=max(1, min(self.max_workers, len(questions))))
        try:
            futures = {
                executor.submit(self.grade, question, answers.get(question.id, "")): index
                for index, question in enumerate(questions)
            }
            done, not_done = wait(futures, timeout=timeout, return_when=ALL_COMPLETED)

            for future in done:
                index = futures[future]
                try:
                    results[index] = future.result()
                except Exception as e:
                    question = questions[index]
                    logger.error(f"Grading question {question.id} crashed: {e}", exc_info=True)
                    results[index] = self.grade_locally(question, answers.get(question.id, ""))

            for future in not_done:
                index = futures[future]
                question = questions[index]
                future.cancel()
                logger.warning(
                    f"Grading question {question.id} timed out after {timeout}s, using local fallback",
                    extra={"question_id": question.id},
                )
                results[index] = self.grade_locally(question, answers.get(question.id, ""))
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        return results
