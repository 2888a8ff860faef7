import pytest

from nutrichef.errors import InvalidImageFormatError, MalformedResponseError, UpstreamError
from nutrichef.scan import IngredientScanClient, split_data_uri

IMAGE = "data:image/jpeg;base64,/9j/4AAQSkZJRg=="


def test_identify_ingredients_sends_image_and_prompt(fake_chat_model):
    llm = fake_chat_model(reply='["Tomato", "Onion", " tomato ", ""]')
    client = IngredientScanClient(llm)

    assert client.identify_ingredients(IMAGE, "en") == ["Tomato", "Onion"]

    (message,) = llm.calls[0]
    text_part, image_part = message.content
    assert "Respond entirely in English" in text_part["text"]
    assert image_part["image_url"]["url"] == IMAGE


@pytest.mark.parametrize("image", ["https://example.com/fridge.jpg", "data:text/plain;base64,aGk=", "", "data:image/png,raw"])
def test_invalid_image_fails_without_model_call(fake_chat_model, image):
    llm = fake_chat_model(reply="[]")
    with pytest.raises(InvalidImageFormatError):
        IngredientScanClient(llm).identify_ingredients(image, "en")
    assert llm.calls == []


@pytest.mark.parametrize("reply", ['{"ingredients": ["Tomato"]}', '["Tomato", 3]', "Tomato, Onion", ""])
def test_non_string_array_is_malformed(fake_chat_model, reply):
    with pytest.raises(MalformedResponseError):
        IngredientScanClient(fake_chat_model(reply=reply)).identify_ingredients(IMAGE, "es")


def test_transport_error_uses_default_message(fake_chat_model):
    client = IngredientScanClient(fake_chat_model(error=TimeoutError("slow")))
    with pytest.raises(UpstreamError, match="Failed to identify ingredients."):
        client.identify_ingredients(IMAGE, "en")


def test_split_data_uri():
    assert split_data_uri(IMAGE) == ("image/jpeg", "/9j/4AAQSkZJRg==")
