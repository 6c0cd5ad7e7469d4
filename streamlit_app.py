"""Streamlit dashboard for product pricing and sales analytics."""

from __future__ import annotations

import logging
from typing import Any

import pandas as pd
import streamlit as st
from pydantic import ValidationError

from app.config import get_analytics_settings, get_baas_settings
from app.connectors.base import BaaSRequestError
from app.logging_utils import configure_logging
from app.repositories.sales_repository import SalesFixtureError
from app.schemas.catalog import (
    CategoryDraft,
    CategoryRule,
    PricingRuleDraft,
    Product,
    ProductInput,
)
from app.schemas.pricing import STRATEGY_STATUSES, PricingStrategyDraft
from app.services.export_service import EXPORT_FILENAME, export_csv
from app.services.preprocessing_service import assess_quality, clean_records
from app.services.product_service import get_product_service
from app.services.sales_loader_service import LoadResult, get_sales_loader_service
from app.services.upload_service import SalesUploadError, load_upload
from catalog import state as catalog
from charts.adapter import merge_series, to_chart_rows, to_frame
from elasticity.simulator import (
    PRICE_CHANGE_SWEEP,
    current_metrics,
    optimal_price_change,
    revenue_change,
    simulate,
)
from sales.aggregator import (
    ALL,
    aggregate,
    aggregate_by_period,
    category_performance,
    distinct_values,
    filter_records,
    monthly_revenue_profit,
    region_heatmap,
    seasonality,
    summary_stats,
    trend_summary,
)
from sales.normalizer import SalesRecord
from sales.periods import GRANULARITIES, MONTH_NAMES, MONTHLY
from strategies import state as strategies

configure_logging()
logger = logging.getLogger(__name__)

st.set_page_config(page_title="Pricing Insights", page_icon="PI", layout="wide")


@st.cache_data(show_spinner=False, ttl=300)
def _load_sales() -> LoadResult:
    """Load the working dataset once per cache window."""
    return get_sales_loader_service().load()


def _format_currency(amount: float | None) -> str:
    if amount is None:
        return "-"
    return f"${amount:,.2f}"


def _format_percent(value: float | None) -> str:
    if value is None:
        return "n/a"
    return f"{value:.1f}%"


def _options(records: list[SalesRecord], field: str) -> list[str]:
    return [ALL, *distinct_values(records, field)]


def _show_validation_error(exc: ValidationError) -> None:
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        st.error(f"{location}: {error.get('msg')}")


if "sales_records" not in st.session_state:
    try:
        loaded = _load_sales()
    except SalesFixtureError as exc:
        st.error(f"Sales data could not be loaded: {exc}")
        st.stop()
    st.session_state.sales_records = loaded.records
    st.session_state.data_source = loaded.source
    if loaded.notice is not None:
        st.toast(f"{loaded.notice.title}: {loaded.notice.description}")
if "cleaned_records" not in st.session_state:
    st.session_state.cleaned_records = None
if "uploaded_name" not in st.session_state:
    st.session_state.uploaded_name = None
if "strategy_state" not in st.session_state:
    st.session_state.strategy_state = strategies.initial_state()
if "catalog_state" not in st.session_state:
    st.session_state.catalog_state = catalog.initial_state()


records: list[SalesRecord] = st.session_state.sales_records
catalog_state: catalog.CatalogState = st.session_state.catalog_state
strategy_state: strategies.StrategyState = st.session_state.strategy_state


with st.sidebar:
    st.header("Filters")
    selected_category = st.selectbox("Category", options=_options(records, "category"))
    selected_region = st.selectbox("Region", options=_options(records, "region"))
    selected_customer_type = st.selectbox("Customer type", options=_options(records, "customer_type"))
    granularity = st.selectbox("Time granularity", options=list(GRANULARITIES), index=GRANULARITIES.index(MONTHLY))
    user_id = st.text_input("User ID", value="", help="Owner recorded on new products.")

    st.caption(f"Data source: {st.session_state.data_source} ({len(records)} records)")
    if st.button("Reload data", use_container_width=True):
        _load_sales.clear()
        for key in ("sales_records", "cleaned_records", "uploaded_name"):
            st.session_state.pop(key, None)
        st.rerun()

filtered = filter_records(
    records,
    category=selected_category,
    region=selected_region,
    customer_type=selected_customer_type,
)

st.title("Pricing Insights")

(
    dashboard_tab,
    products_tab,
    categories_tab,
    rules_tab,
    analytics_tab,
    patterns_tab,
    strategies_tab,
    preparation_tab,
) = st.tabs(
    [
        "Dashboard",
        "Products",
        "Categories",
        "Pricing Rules",
        "Sales Analytics",
        "Patterns",
        "Pricing Strategies",
        "Data Preparation",
    ]
)


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------

with dashboard_tab:
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Products", len(catalog_state.products))
    col2.metric("Categories", len(catalog_state.categories))
    col3.metric("Pricing rules", len(catalog_state.pricing_rules))
    col4.metric("Average margin", _format_percent(catalog.average_product_margin(catalog_state)))

    st.subheader("Revenue & Profit Overview")
    monthly = monthly_revenue_profit(filtered)
    st.line_chart(to_frame(merge_series(monthly, key_field="month"), index="month"))

    left, right = st.columns(2)
    with left:
        st.subheader("Products by Category")
        counts = catalog.product_count_by_category(catalog_state)
        st.bar_chart(to_frame(counts, index="name")[["value"]])
    with right:
        st.subheader("Category Performance")
        st.dataframe(to_frame(category_performance(filtered)), use_container_width=True)


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------

with products_tab:
    st.subheader("Products")
    st.dataframe(to_frame([p.model_dump() for p in catalog_state.products]), use_container_width=True)

    with st.form("categorize_product"):
        st.markdown("**Categorize product**")
        product_id = st.selectbox(
            "Product",
            options=[p.id for p in catalog_state.products],
            format_func=lambda pid: next(p.name for p in catalog_state.products if p.id == pid),
        )
        category_id = st.selectbox(
            "Category",
            key="categorize_category",
            options=[c.id for c in catalog_state.categories],
            format_func=lambda cid: catalog.category_name(catalog_state, cid),
        )
        if st.form_submit_button("Apply category"):
            st.session_state.catalog_state = catalog.categorize_product(catalog_state, product_id, category_id)
            st.toast(f"Product added to {catalog.category_name(catalog_state, category_id)}")
            st.rerun()

    with st.form("add_product", clear_on_submit=True):
        st.markdown("**Add product**")
        name = st.text_input("Name", key="product_name")
        sku = st.text_input("SKU")
        price = st.number_input("Price", min_value=0.0, step=1.0)
        category = st.selectbox("Category", key="product_category", options=["", *(c.name for c in catalog_state.categories)])
        demand = st.selectbox("Demand", options=["", "high", "medium", "low"])
        seasonality_text = st.text_input("Seasonality")
        margin = st.number_input("Margin (%)", min_value=0.0, step=0.5)
        trend = st.selectbox("Trend", options=["", "up", "stable", "down"])
        image_url = st.text_input("Image URL")
        submitted = st.form_submit_button("Save product")

    if submitted:
        try:
            product_input = ProductInput(
                name=name,
                sku=sku,
                price=price,
                category=category or None,
                demand=demand or None,
                seasonality=seasonality_text or None,
                margin=margin or None,
                trend=trend or None,
                image_url=image_url,
            )
        except ValidationError as exc:
            _show_validation_error(exc)
        else:
            stored: dict[str, Any] | None = None
            if get_baas_settings().enabled:
                if not user_id.strip():
                    st.error("A user ID is required to save products to the database.")
                    st.stop()
                try:
                    stored = get_product_service().create_product(product_input, user_id=user_id.strip())
                except BaaSRequestError as exc:
                    st.error(f"Product could not be saved: {exc}")
                    st.stop()
            new_product = Product(
                id=str((stored or {}).get("id") or f"prod-{len(catalog_state.products) + 1}"),
                **product_input.model_dump(exclude={"image_url"}),
                image_url=product_input.image_url or None,
            )
            st.session_state.catalog_state = catalog.add_product(catalog_state, new_product)
            st.toast(f"{new_product.name} has been added")
            st.rerun()


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------

with categories_tab:
    st.subheader("Categories")
    for item in catalog_state.categories:
        with st.expander(f"{item.name} ({item.id})"):
            st.write(item.description or "-")
            st.caption(f"Attributes: {', '.join(item.attributes) or '-'} | Color: {item.color}")
            if item.rules:
                st.dataframe(to_frame([rule.model_dump() for rule in item.rules]), use_container_width=True)

    with st.form("create_category", clear_on_submit=True):
        st.markdown("**Create category**")
        category_name = st.text_input("Name", key="category_name")
        category_description = st.text_area("Description", key="category_description")
        attributes_text = st.text_input("Attributes (comma separated)")
        category_color = st.color_picker("Color", value="#e2e8f0")
        rule_attribute = st.text_input("Rule attribute (optional)")
        rule_operator = st.selectbox("Rule operator", options=["equals", "contains", "greater_than", "less_than"])
        rule_value = st.text_input("Rule value")
        create_category_clicked = st.form_submit_button("Create category")

    if create_category_clicked:
        attributes = tuple(part.strip() for part in attributes_text.split(",") if part.strip())
        rules: tuple[CategoryRule, ...] = ()
        if rule_attribute.strip():
            rules = (
                CategoryRule(
                    id=f"rule-{sum(len(c.rules) for c in catalog_state.categories) + 1}",
                    attribute=rule_attribute,
                    operator=rule_operator,
                    value=rule_value,
                ),
            )
        try:
            draft = CategoryDraft(
                name=category_name,
                description=category_description,
                attributes=attributes,
                rules=rules,
                color=category_color,
            )
        except ValidationError as exc:
            _show_validation_error(exc)
        else:
            st.session_state.catalog_state = catalog.create_category(catalog_state, draft)
            st.toast(f"{draft.name} has been created successfully")
            st.rerun()


# ---------------------------------------------------------------------------
# Pricing rules
# ---------------------------------------------------------------------------

with rules_tab:
    st.subheader("Pricing Rules")
    rule_rows = [
        {**rule.model_dump(), "category": catalog.category_name(catalog_state, rule.category_id)}
        for rule in sorted(catalog_state.pricing_rules, key=lambda r: r.priority)
    ]
    st.dataframe(to_frame(rule_rows), use_container_width=True)

    if catalog_state.pricing_rules:
        rule_id = st.selectbox(
            "Rule",
            options=[rule.id for rule in catalog_state.pricing_rules],
            format_func=lambda rid: next(r.name for r in catalog_state.pricing_rules if r.id == rid),
        )
        current_rule = next(r for r in catalog_state.pricing_rules if r.id == rule_id)
        toggle_col, delete_col = st.columns(2)
        if toggle_col.button("Deactivate" if current_rule.active else "Activate", use_container_width=True):
            updated = current_rule.model_copy(update={"active": not current_rule.active})
            st.session_state.catalog_state = catalog.update_pricing_rule(catalog_state, updated)
            st.toast(f"{updated.name} has been updated successfully")
            st.rerun()
        if delete_col.button("Delete", use_container_width=True):
            st.session_state.catalog_state = catalog.delete_pricing_rule(catalog_state, rule_id)
            st.toast("The pricing rule has been deleted")
            st.rerun()

    with st.form("create_rule", clear_on_submit=True):
        st.markdown("**Create pricing rule**")
        rule_name = st.text_input("Name", key="rule_name")
        rule_category_id = st.selectbox(
            "Category",
            key="rule_category",
            options=[c.id for c in catalog_state.categories],
            format_func=lambda cid: catalog.category_name(catalog_state, cid),
        )
        rule_type = st.selectbox("Type", options=["percentage", "fixed", "margin-based"])
        rule_amount = st.number_input("Value", step=1.0)
        start_date = st.text_input("Start date (YYYY-MM-DD, optional)")
        end_date = st.text_input("End date (YYYY-MM-DD, optional)")
        priority = st.number_input("Priority", min_value=1, step=1, value=len(catalog_state.pricing_rules) + 1)
        active = st.checkbox("Active", value=True)
        create_rule_clicked = st.form_submit_button("Create rule")

    if create_rule_clicked:
        try:
            rule_draft = PricingRuleDraft(
                name=rule_name,
                category_id=rule_category_id or "",
                type=rule_type,
                value=rule_amount,
                start_date=start_date or None,
                end_date=end_date or None,
                priority=int(priority),
                active=active,
            )
        except ValidationError as exc:
            _show_validation_error(exc)
        else:
            st.session_state.catalog_state = catalog.create_pricing_rule(catalog_state, rule_draft)
            st.toast(f"{rule_draft.name} has been created successfully")
            st.rerun()


# ---------------------------------------------------------------------------
# Sales analytics
# ---------------------------------------------------------------------------

with analytics_tab:
    stats = summary_stats(filtered)
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Total revenue", _format_currency(stats.total_revenue))
    col2.metric("Products", stats.total_products)
    col3.metric("Categories", stats.total_categories)
    col4.metric("Average margin", _format_percent(stats.average_margin))

    st.subheader("Sales Trend Over Time")
    period_series = {
        "sales": aggregate_by_period(filtered, granularity),
        "quantity": aggregate_by_period(filtered, granularity, value=lambda r: r.quantity),
    }
    trend_rows = merge_series(period_series)
    if trend_rows:
        st.line_chart(to_frame(trend_rows, index="period"))
    else:
        st.info("No dated records match the current filters.")

    st.subheader("Sales by Category")
    category_rows = to_chart_rows(aggregate(filtered, key=lambda r: r.category, sort_desc=True))
    if category_rows:
        st.bar_chart(to_frame(category_rows, index="name"))

    st.subheader("Records")
    st.dataframe(to_frame([record.to_dict() for record in filtered]), use_container_width=True)


# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

with patterns_tab:
    trend_points = aggregate_by_period(filtered, granularity)
    trend = trend_summary(trend_points)
    peak = max(seasonality(filtered), key=lambda bucket: bucket.value or 0.0)
    col1, col2, col3 = st.columns(3)
    col1.metric("Trend", trend.direction, delta=_format_percent(trend.percentage))
    col2.metric("Peak month", peak.key if peak.value else "-")
    col3.metric("Periods", len(trend_points))

    season_tab, region_tab, customer_tab, heatmap_tab = st.tabs(
        ["Seasonality", "Regional Analysis", "Customer Segments", "Heat Map Analysis"]
    )
    with season_tab:
        st.bar_chart(to_frame(to_chart_rows(seasonality(filtered)), index="name"))
    with region_tab:
        region_rows = to_chart_rows(aggregate(filtered, key=lambda r: r.region, sort_desc=True))
        if region_rows:
            st.bar_chart(to_frame(region_rows, index="name"))
    with customer_tab:
        customer_rows = to_chart_rows(aggregate(filtered, key=lambda r: r.customer_type, sort_desc=True))
        if customer_rows:
            st.bar_chart(to_frame(customer_rows, index="name"))
    with heatmap_tab:
        cells = region_heatmap(filtered)
        if cells:
            grid = to_frame(cells).pivot(index="month", columns="region", values="sales")
            st.dataframe(grid.reindex(list(MONTH_NAMES)), use_container_width=True)
        else:
            st.info("No regional data available.")


# ---------------------------------------------------------------------------
# Pricing strategies
# ---------------------------------------------------------------------------

with strategies_tab:
    simulation_category = st.selectbox(
        "Simulation category",
        options=_options(records, "category"),
        index=_options(records, "category").index(strategy_state.selected_category)
        if strategy_state.selected_category in _options(records, "category")
        else 0,
    )
    if simulation_category != strategy_state.selected_category:
        st.session_state.strategy_state = strategies.select_filters(strategy_state, category=simulation_category)
        strategy_state = st.session_state.strategy_state

    simulation_records = filter_records(records, category=simulation_category, region=selected_region)
    metrics = current_metrics(simulation_records)
    points = simulate(
        simulation_records,
        default_elasticity=get_analytics_settings().default_elasticity,
        category=simulation_category,
    )
    best = optimal_price_change(points)

    col1, col2, col3 = st.columns(3)
    col1.metric("Current revenue", _format_currency(metrics.total_revenue))
    col2.metric("Average price", _format_currency(metrics.average_price))
    col3.metric("Optimal price change", f"{best:+g}%")

    simulation_frame = to_frame(points, index="price_change")
    left, right = st.columns(2)
    with left:
        st.markdown("**Price Elasticity Simulation**")
        st.line_chart(simulation_frame[["revenue"]])
    with right:
        st.markdown("**Quantity Impact**")
        st.bar_chart(simulation_frame[["quantity"]])

    chosen_change = st.select_slider("Price change (%)", options=list(PRICE_CHANGE_SWEEP), value=best)
    chosen_point = next(point for point in points if point.price_change == chosen_change)
    delta = revenue_change(points, chosen_point.revenue)
    st.caption(
        f"Projected revenue {_format_currency(chosen_point.revenue)} "
        f"({_format_currency(delta.absolute)}, {_format_percent(delta.percent)} vs. no change)"
    )

    with st.form("create_strategy", clear_on_submit=True):
        st.markdown("**Create New Pricing Strategy**")
        strategy_name = st.text_input("Strategy name")
        strategy_description = st.text_area("Description", key="strategy_description")
        target_category = st.selectbox("Target category", options=["", *distinct_values(records, "category")])
        target_region = st.selectbox("Target region", options=["", *distinct_values(records, "region")])
        change_type = st.selectbox("Change type", options=["percentage", "fixed"])
        price_change = st.number_input("Price change", value=float(chosen_change), step=1.0)
        expected_impact = st.number_input(
            "Expected impact (%)",
            value=round(delta.percent or 0.0, 1),
            step=0.5,
        )
        implementation_date = st.date_input("Implementation date", value=None)
        collaborators_text = st.text_input("Collaborators (comma separated)")
        create_strategy_clicked = st.form_submit_button("Create strategy")

    if create_strategy_clicked:
        strategy_draft = PricingStrategyDraft(
            name=strategy_name,
            description=strategy_description,
            target_category=target_category,
            target_region=target_region or None,
            price_change=price_change,
            change_type=change_type,
            expected_impact=expected_impact,
            implementation_date=implementation_date.isoformat() if implementation_date else "",
            collaborators=tuple(part.strip() for part in collaborators_text.split(",") if part.strip()),
        )
        try:
            st.session_state.strategy_state = strategies.create_strategy(strategy_state, strategy_draft)
        except strategies.StrategyValidationError as exc:
            st.error(str(exc))
        else:
            st.toast(f"{strategy_draft.name} has been created")
            st.rerun()

    status_tabs = st.tabs(["All Strategies", "Proposed", "Approved", "Implemented"])
    for status_tab, status in zip(status_tabs, (None, "proposed", "approved", "implemented")):
        with status_tab:
            shown = (
                list(strategy_state.strategies)
                if status is None
                else strategies.strategies_with_status(strategy_state, status)
            )
            if not shown:
                st.info("No strategies in this state.")
            for strategy in shown:
                unit = "%" if strategy.change_type == "percentage" else "$"
                st.markdown(
                    f"**{strategy.name}** ({strategy.status}) - {strategy.target_category}"
                    f"{' / ' + strategy.target_region if strategy.target_region else ''}: "
                    f"{strategy.price_change:+g}{unit}, expected impact {strategy.expected_impact:g}%"
                )
                st.caption(f"{strategy.description} | Starts {strategy.implementation_date}")
                if status is None:
                    new_status = st.selectbox(
                        "Status",
                        options=list(STRATEGY_STATUSES),
                        index=STRATEGY_STATUSES.index(strategy.status),
                        key=f"status-{strategy.id}",
                    )
                    if new_status != strategy.status:
                        st.session_state.strategy_state = strategies.update_status(
                            strategy_state, strategy.id, new_status
                        )
                        st.rerun()


# ---------------------------------------------------------------------------
# Data preparation
# ---------------------------------------------------------------------------

with preparation_tab:
    report = assess_quality(records)
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Records", report.total_records)
    col2.metric("Missing values", report.missing_values)
    col3.metric("Anomalies", report.anomalies)
    col4.metric("Quality score", f"{report.quality_score}%")

    uploaded_file = st.file_uploader("Upload JSON data file", type=["json"])
    if uploaded_file is not None and uploaded_file.name != st.session_state.uploaded_name:
        try:
            uploaded_records = load_upload(uploaded_file.getvalue(), filename=uploaded_file.name)
        except SalesUploadError as exc:
            st.error(f"Error uploading file: {exc}")
        else:
            st.session_state.sales_records = uploaded_records
            st.session_state.data_source = "upload"
            st.session_state.uploaded_name = uploaded_file.name
            st.session_state.cleaned_records = None
            st.toast(f"{len(uploaded_records)} records loaded from {uploaded_file.name}")
            st.rerun()

    if st.button("Clean & Preprocess Data", type="primary"):
        with st.spinner("Cleaning data..."):
            cleaned = clean_records(records, fallback_year=get_analytics_settings().fallback_year)
        st.session_state.cleaned_records = cleaned
        st.session_state.sales_records = cleaned
        st.toast(f"{len(cleaned)} records cleaned and processed successfully.")
        st.rerun()

    cleaned_records = st.session_state.cleaned_records
    if cleaned_records:
        st.markdown("**Cleaned data preview**")
        st.dataframe(
            pd.DataFrame([record.to_dict() for record in cleaned_records[:5]]),
            use_container_width=True,
        )
        st.download_button(
            label="Export cleaned data",
            data=export_csv(cleaned_records).encode("utf-8"),
            file_name=EXPORT_FILENAME,
            mime="text/csv",
            use_container_width=True,
        )
