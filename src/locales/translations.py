# Month keys are 0-11 (January first), weekday keys 0-6 (Sunday first).
TRANSLATIONS = {
    "en": {
        "months": {
            0: "January", 1: "February", 2: "March", 3: "April",
            4: "May", 5: "June", 6: "July", 7: "August",
            8: "September", 9: "October", 10: "November", 11: "December",
        },
        "weekdays": {
            0: "Sunday", 1: "Monday", 2: "Tuesday", 3: "Wednesday",
            4: "Thursday", 5: "Friday", 6: "Saturday",
        },
    },
    "pl": {
        "months": {
            0: "Sty", 1: "Lut", 2: "Mar", 3: "Kwi",
            4: "Maj", 5: "Cze", 6: "Lip", 7: "Sie",
            8: "Wrz", 9: "Paź", 10: "Lis", 11: "Gru",
        },
        "weekdays": {
            0: "niedziela", 1: "poniedziałek", 2: "wtorek", 3: "środa",
            4: "czwartek", 5: "piątek", 6: "sobota",
        },
    },
    "es": {
        "months": {
            0: "enero", 1: "febrero", 2: "marzo", 3: "abril",
            4: "mayo", 5: "junio", 6: "julio", 7: "agosto",
            8: "septiembre", 9: "octubre", 10: "noviembre", 11: "diciembre",
        },
        "weekdays": {
            0: "domingo", 1: "lunes", 2: "martes", 3: "miércoles",
            4: "jueves", 5: "viernes", 6: "sábado",
        },
    },
}
