import logging
from dataclasses import dataclass, field

from bs4 import BeautifulSoup, Tag

from ..models import ArtworkFile, BrandingConfig, BrandingOption, SelectionState, parse_quantity
from .pricing import DEFAULT_MONEY_FORMAT, format_money

logger = logging.getLogger(__name__)

WRAPPER_CLASS = "branding-options"
SELECT_NAME = "properties[_branding_option]"
FILE_INPUT_NAME = "branding_file"
ARTWORK_ACCEPT = ".jpg,.jpeg,.png,.pdf,.eps,.ai,.svg"
HIDDEN = "display:none"
VISIBLE = "display:block"


@dataclass(eq=False)
class FormState:
    """Injected controls and current selection of one product form."""

    form: Tag
    config: BrandingConfig
    wrapper: Tag
    select: Tag
    file_input: Tag
    quantity_input: Tag
    selection: SelectionState = field(default_factory=SelectionState)

    @property
    def file_input_visible(self) -> bool:
        return self.file_input.get("style") != HIDDEN

    def choose(self, value: str | None) -> BrandingOption:
        option = self.config.option(value)
        if option is None:
            logger.warning("Unknown branding option %r; using %r", value, self.config.options[0].value)
            option = self.config.options[0]
        self.selection.option = option

        for opt in self.select.find_all("option"):
            if opt.get("value") == option.value:
                opt["selected"] = "selected"
            elif opt.has_attr("selected"):
                del opt["selected"]

        self.file_input["style"] = VISIBLE if option.is_branded else HIDDEN
        if not option.is_branded:
            self.selection.artwork = None
        return option

    def set_quantity(self, value) -> int:
        qty = parse_quantity(value)
        self.selection.quantity = qty
        self.quantity_input["value"] = str(qty)
        return qty

    def attach_artwork(self, artwork: ArtworkFile | None):
        self.selection.artwork = artwork


class UIInjector:
    """Puts the branding selector and artwork upload into product forms, once per form."""

    def __init__(self, money_format: str = DEFAULT_MONEY_FORMAT):
        self.money_format = money_format
        self._states: dict[int, FormState] = {}

    def state_for(self, form: Tag) -> FormState | None:
        return self._states.get(id(form))

    def inject(self, soup: BeautifulSoup, form: Tag, config: BrandingConfig) -> FormState:
        state = self.state_for(form)
        if state is not None:
            return state

        state = self._adopt(form, config)
        if state is None:
            state = self._build(soup, form, config)
        self._states[id(form)] = state

        selected = state.select.select_one("option[selected]")
        state.choose(selected.get("value") if selected is not None else config.options[0].value)
        state.set_quantity(state.quantity_input.get("value"))
        return state

    def _option_text(self, option: BrandingOption) -> str:
        if option.price > 0:
            return f"{option.label} ( +{format_money(option.price, self.money_format)} )"
        return option.label

    def _build(self, soup: BeautifulSoup, form: Tag, config: BrandingConfig) -> FormState:
        wrapper = soup.new_tag("div", attrs={"class": WRAPPER_CLASS})

        label = soup.new_tag("label", attrs={"for": "branding-option-select"})
        label.string = "Branding Options"
        wrapper.append(label)

        select = soup.new_tag("select", attrs={"id": "branding-option-select", "name": SELECT_NAME})
        for opt in config.options:
            el = soup.new_tag("option", attrs={"value": opt.value, "data-price": f"{opt.price:g}"})
            el.string = self._option_text(opt)
            select.append(el)
        wrapper.append(select)

        file_input = soup.new_tag(
            "input",
            attrs={"type": "file", "name": FILE_INPUT_NAME, "accept": ARTWORK_ACCEPT, "style": HIDDEN},
        )
        wrapper.append(file_input)

        quantity_input = form.select_one('input[name="quantity"]')
        if quantity_input is None:
            quantity_input = soup.new_tag("input", attrs={"type": "number", "name": "quantity", "min": "1", "value": "1"})
            wrapper.append(quantity_input)

        submit = form.select_one('button[type="submit"], input[type="submit"]')
        if submit is not None:
            submit.insert_before(wrapper)
        else:
            form.append(wrapper)

        return FormState(form, config, wrapper, select, file_input, quantity_input)

    def _adopt(self, form: Tag, config: BrandingConfig) -> FormState | None:
        """Reuse controls already present in the form, e.g. a page rendered by an earlier pass."""
        wrapper = form.select_one(f"div.{WRAPPER_CLASS}")
        if wrapper is None:
            return None
        select = wrapper.select_one(f'select[name="{SELECT_NAME}"]')
        file_input = wrapper.select_one(f'input[name="{FILE_INPUT_NAME}"]')
        quantity_input = form.select_one('input[name="quantity"]')
        if select is None or file_input is None or quantity_input is None:
            logger.warning("Incomplete branding controls found in product form; rebuilding them")
            wrapper.decompose()
            return None
        return FormState(form, config, wrapper, select, file_input, quantity_input)
