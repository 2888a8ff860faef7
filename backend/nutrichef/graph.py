from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Optional, TypedDict

from langgraph.graph import END, START, StateGraph
from openinference.semconv.trace import OpenInferenceSpanKindValues

from .fallback_images import fallback_image_url
from .images import is_quota_error, quota_message
from .models import GenerationBatch, GenerationPhase, Language, Recipe
from .tracing import set_output, start_span

logger = logging.getLogger(__name__)

DEFAULT_ERROR_MESSAGE = "An unknown error occurred."


class GraphState(TypedDict, total=False):
    batch: GenerationBatch
    error_message: Optional[str]


def _error_text(error: BaseException, default: str) -> str:
    return getattr(error, "message", None) or str(error) or default


class RecipeOrchestrator:
    """Generates a recipe batch, then illustrates it one recipe at a time.

    ``recipe_client`` needs ``generate_recipes(ingredients, language, error_message)``
    and ``image_client`` needs ``generate_image(recipe_name, description)``; the
    direct model clients and :class:`~nutrichef.api_client.NutriChefApiClient`
    both qualify.

    Phases: IDLE -> GENERATING -> PER_RECIPE(i) -> DONE, or ABORTED once a quota
    error stops image generation, or FAILED when no recipes could be produced.
    ``on_update`` receives the batch after every transition.
    """

    def __init__(
        self,
        recipe_client: Any,
        image_client: Any,
        is_quota_error: Callable[[BaseException], bool] = is_quota_error,
        fallback_image: Callable[[str], str] = fallback_image_url,
        on_update: Optional[Callable[[GenerationBatch], None]] = None,
    ):
        self.recipe_client = recipe_client
        self.image_client = image_client
        self.is_quota_error = is_quota_error
        self.fallback_image = fallback_image
        self.on_update = on_update
        self.graph = self.build_graph()

    def _notify(self, batch: GenerationBatch) -> None:
        if self.on_update is not None:
            self.on_update(batch)

    def _generate_node(self, state: GraphState) -> GraphState:
        batch = state["batch"]
        batch.phase = GenerationPhase.GENERATING
        batch.recipes = []
        batch.error = None
        batch.image_error = None
        self._notify(batch)

        with start_span(
            "generate_recipes",
            OpenInferenceSpanKindValues.CHAIN,
            input_value=", ".join(batch.ingredients),
        ) as span:
            try:
                drafts = self.recipe_client.generate_recipes(
                    batch.ingredients, batch.language, state.get("error_message")
                )
            except Exception as e:
                logger.warning("Recipe generation failed: %s", e)
                batch.error = _error_text(e, state.get("error_message") or DEFAULT_ERROR_MESSAGE)
                batch.phase = GenerationPhase.FAILED
                set_output(span, "failed")
                self._notify(batch)
                return {"batch": batch}

            batch.recipes = [Recipe.from_draft(draft) for draft in drafts]
            batch.phase = GenerationPhase.PER_RECIPE
            batch.current_index = 0
            set_output(span, f"{len(batch.recipes)} recipes")
        self._notify(batch)
        return {"batch": batch}

    def _apply_quota_fallback(self, batch: GenerationBatch, error: BaseException) -> None:
        for recipe in batch.recipes:
            if not recipe.image_url:
                recipe.image_url = self.fallback_image(recipe.recipe_name)
        # The quota message replaces any earlier per-recipe error.
        batch.image_error = quota_message(error)
        batch.phase = GenerationPhase.ABORTED

    def _image_node(self, state: GraphState) -> GraphState:
        batch = state["batch"]
        index = batch.current_index or 0
        recipe = batch.recipes[index]
        batch.image_requests += 1

        with start_span(
            "recipe_image",
            OpenInferenceSpanKindValues.CHAIN,
            input_value=recipe.recipe_name,
            metadata={"index": index},
        ) as span:
            try:
                recipe.image_url = self.image_client.generate_image(recipe.recipe_name, recipe.description)
                set_output(span, "generated")
            except Exception as e:
                if self.is_quota_error(e):
                    logger.warning(
                        'Image quota exhausted at "%s"; using fallbacks for the remaining recipes.',
                        recipe.recipe_name,
                    )
                    self._apply_quota_fallback(batch, e)
                    set_output(span, "quota")
                else:
                    logger.warning('Image generation failed for "%s": %s', recipe.recipe_name, e)
                    recipe.image_url = self.fallback_image(recipe.recipe_name)
                    if batch.image_error is None:
                        batch.image_error = _error_text(e, DEFAULT_ERROR_MESSAGE)
                    set_output(span, "fallback")

        if batch.phase != GenerationPhase.ABORTED:
            batch.current_index = index + 1
        self._notify(batch)
        return {"batch": batch}

    def _finish_node(self, state: GraphState) -> GraphState:
        batch = state["batch"]
        batch.phase = GenerationPhase.DONE
        batch.current_index = None
        self._notify(batch)
        return {"batch": batch}

    def _route_after_generate(self, state: GraphState) -> str:
        batch = state["batch"]
        if batch.phase == GenerationPhase.FAILED:
            return "end"
        return "image" if batch.recipes else "finish"

    def _route_after_image(self, state: GraphState) -> str:
        batch = state["batch"]
        if batch.phase == GenerationPhase.ABORTED:
            return "end"
        if (batch.current_index or 0) < len(batch.recipes):
            return "image"
        return "finish"

    def build_graph(self):
        graph = StateGraph(GraphState)
        graph.add_node("generate", self._generate_node)
        graph.add_node("image", self._image_node)
        graph.add_node("finish", self._finish_node)

        graph.add_edge(START, "generate")
        graph.add_conditional_edges(
            "generate",
            self._route_after_generate,
            {"image": "image", "finish": "finish", "end": END},
        )
        graph.add_conditional_edges(
            "image",
            self._route_after_image,
            {"image": "image", "finish": "finish", "end": END},
        )
        graph.add_edge("finish", END)
        return graph.compile()

    def run(
        self,
        ingredients: Iterable[str],
        language: Language = "en",
        error_message: Optional[str] = None,
    ) -> GenerationBatch:
        batch = GenerationBatch(ingredients=list(ingredients), language=language)
        with start_span(
            "recipe_batch",
            OpenInferenceSpanKindValues.AGENT,
            input_value=", ".join(batch.ingredients),
        ) as span:
            state = self.graph.invoke({"batch": batch, "error_message": error_message})
            batch = state["batch"]
            set_output(span, f"{batch.phase.value}: {len(batch.recipes)} recipes")
        logger.info(
            "Recipe batch finished in phase %s with %d recipes and %d image requests.",
            batch.phase.value,
            len(batch.recipes),
            batch.image_requests,
        )
        return batch
