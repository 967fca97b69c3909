from api_service.schemas.formula import FormulaTemplate, FormulaVariable

ENERGY_CALCULATION_TEMPLATES = [
    FormulaTemplate(
        id="annual-energy-savings",
        name="Annual energy savings",
        description="Yearly savings from lower energy consumption at the current energy price.",
        formula_text="([field:current_consumption] - [field:new_consumption]) * [field:energy_price]",
        variables=[
            FormulaVariable(name="current_consumption", description="Current energy consumption", unit="kWh/year"),
            FormulaVariable(name="new_consumption", description="Consumption after the upgrade", unit="kWh/year"),
            FormulaVariable(name="energy_price", description="Energy price", unit="€/kWh"),
        ],
        category="savings",
        tags=["energy", "savings", "annual"],
    ),
    FormulaTemplate(
        id="payback-period",
        name="Payback period",
        description="Years until the investment is paid back by the annual savings.",
        formula_text="[field:investment_cost] / [field:annual_savings]",
        variables=[
            FormulaVariable(name="investment_cost", description="Total investment", unit="€"),
            FormulaVariable(name="annual_savings", description="Savings per year", unit="€/year"),
        ],
        category="investment",
        tags=["payback", "investment", "roi"],
    ),
    FormulaTemplate(
        id="co2-reduction",
        name="CO2 reduction",
        description="Yearly CO2 emission reduction from the saved energy.",
        formula_text="[field:energy_savings] * [field:co2_factor]",
        variables=[
            FormulaVariable(name="energy_savings", description="Energy saved per year", unit="kWh/year"),
            FormulaVariable(name="co2_factor", description="Emission factor", unit="kg CO2/kWh"),
        ],
        category="environmental",
        tags=["co2", "environment", "emissions"],
    ),
    FormulaTemplate(
        id="total-savings",
        name="Total savings",
        description="Annual savings minus the investment, using the annual-energy-savings formula.",
        formula_text="[calc:annual-energy-savings] - [field:investment_cost]",
        variables=[
            FormulaVariable(name="investment_cost", description="Total investment", unit="€"),
        ],
        category="savings",
        tags=["savings", "total", "reference"],
    ),
]
